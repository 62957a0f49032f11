import itertools as it, operator as op, functools as ft
from pathlib import Path
import time

from . import gtfs, engine, nav, commands, utils as u, types as t


def calc_timer(func, *args, log=u.get_logger('gd.timer'), timer_name=None, **kws):
	if not timer_name:
		func_base = func if not isinstance(func, ft.partial) else func.func
		timer_name = '.'.join([func_base.__module__.strip('__'), func_base.__qualname__])
	log.debug('[{}] Starting...', timer_name)
	td = time.monotonic()
	data = func(*args, **kws)
	td = time.monotonic() - td
	log.debug('[{}] Finished in: {:.1f}s', timer_name, td)
	return data


def init_feed_node(
		source=None, cache_path=None, conf=None,
		events=None, timer_func=None, log=u.get_logger('gd.init') ):
	'''Load schedule from GTFS feed source (conf.feed_url by default) and return root Node for it.
		If cache_path is specified, schedule is unpickled from there if that file exists,
			or pickled there after loading the feed otherwise.'''
	if not conf: conf = gtfs.GTFSConf()

	schedule_func = gtfs.load_schedule
	if timer_func: schedule_func = ft.partial(timer_func, schedule_func)

	if cache_path: cache_path = Path(cache_path)
	if cache_path and cache_path.is_file():
		schedule_load = u.pickle_load
		if timer_func: schedule_load = ft.partial(timer_func, schedule_load, timer_name='schedule_load')
		try: schedule = schedule_load(cache_path, fail=True)
		except Exception as err: raise gtfs.CacheLoadError(cache_path, err) from err
		if not isinstance(schedule, t.schedule.Schedule):
			raise gtfs.CacheLoadError(cache_path, 'not a pickled schedule, but {}'.format(type(schedule).__name__))
	else:
		schedule = schedule_func(source, conf, events)
		if cache_path: u.pickle_dump(schedule, cache_path)
	log.debug(
		'Feed schedule: stops={:,}, routes={:,}, trips={:,}, stop_times={:,}',
		len(schedule.stops), len(schedule.routes), len(schedule.trips), len(schedule.stop_times) )

	return nav.Node.root(schedule)
