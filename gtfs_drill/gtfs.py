import itertools as it, operator as op, functools as ft
from collections import namedtuple
from pathlib import Path
import os, re, io, csv, zipfile, posixpath, contextlib

import pytz, requests

from . import utils as u, types as t


log = u.get_logger('gd.gtfs')


@u.attr_struct(vals_to_attrs=True)
class GTFSConf:

	# Used when no explicit source (url/path) is passed to load_schedule()
	feed_url = 'https://cdn.mbta.com/MBTA_GTFS.zip'

	fetch_timeout = 60 # seconds, for both connection and each chunk read
	fetch_chunk_size = 64 * 2**10

	encoding = 'utf-8-sig' # most feeds are either plain utf-8 or have BOM

	# Raise StopHierarchyError on parent_station refs
	#  to missing stops or loops, instead of only failing on projections later.
	check_stop_hierarchy = True

	# Stop times are kept in feed order within each trip unless this is set.
	sort_stop_times = False


class LoaderEvents:
	'Progress hooks for load_schedule(), all no-op by default, override in subclass.'
	def on_download(self, bytes_done, bytes_total): pass # bytes_total can be None
	def on_table_opened(self, table): pass
	def on_table_loaded(self, table, count): pass


class FeedLoadError(Exception):
	def __init__(self, msg, cause=None):
		super(FeedLoadError, self).__init__(msg)
		self.cause = cause

class FeedFetchError(FeedLoadError):
	def __init__(self, url, cause):
		super(FeedFetchError, self).__init__(
			'Failed to download feed from {}: {}'.format(url, cause), cause )
		self.url = url

class TableNotFound(FeedLoadError):
	def __init__(self, table, cause):
		super(TableNotFound, self).__init__('Failed to open {}: {}'.format(table, cause), cause)
		self.table = table

class TableLoadError(FeedLoadError):
	def __init__(self, table, cause):
		super(TableLoadError, self).__init__('Failed to load {}: {}'.format(table, cause), cause)
		self.table = table

class StopHierarchyError(FeedLoadError): pass

class CacheLoadError(FeedLoadError):
	def __init__(self, path, cause):
		super(CacheLoadError, self).__init__(
			'Failed to load cached schedule from {}: {}'.format(path, cause), cause )
		self.path = path

class RecordError(ValueError):
	'Problem with a single csv line, line number is filled-in by the table loader.'

	def __init__(self, msg, field=None, line=None):
		super(RecordError, self).__init__(msg)
		self.msg, self.field, self.line = msg, field, line

	def __str__(self):
		prefix = list()
		if self.line is not None: prefix.append('line {}'.format(self.line))
		if self.field: prefix.append('field {!r}'.format(self.field))
		return ', '.join(prefix) + ': {}'.format(self.msg) if prefix else str(self.msg)


### Feed sources

def fetch_feed(url, conf, events):
	'Download feed archive into memory, reporting progress via events.on_download().'
	log.debug('Downloading feed: {}', url)
	buff = io.BytesIO()
	try:
		with requests.get(url, stream=True, timeout=conf.fetch_timeout) as res:
			res.raise_for_status()
			size = res.headers.get('Content-Length')
			size = int(size) if size and size.isdigit() else None
			events.on_download(0, size)
			for chunk in res.iter_content(chunk_size=conf.fetch_chunk_size):
				if not chunk: continue
				buff.write(chunk)
				events.on_download(buff.tell(), size)
	except requests.RequestException as err: raise FeedFetchError(url, err) from err
	log.debug('Downloaded {:,} B from: {}', buff.tell(), url)
	return buff.getvalue()

def is_url(source):
	return isinstance(source, str) and bool(re.match(r'(?i)https?://', source))

@contextlib.contextmanager
def open_feed(source, conf, events):
	'''Context yielding open_table(filename) function for specified feed source,
		which can be url, path to zip file or extracted directory, or bytes of zip file.'''
	if is_url(source): source = fetch_feed(source, conf, events)
	if isinstance(source, (bytes, bytearray)): source = io.BytesIO(source)
	elif isinstance(source, (str, os.PathLike)):
		path = Path(source)
		if path.is_dir():
			def open_table(filename):
				try: return (path / filename).open(encoding=conf.encoding, newline='')
				except OSError as err: raise TableNotFound(filename, err) from err
			yield open_table
			return
		if not path.exists():
			raise FeedLoadError('Feed source not found: {}'.format(source))
	try: zf = zipfile.ZipFile(source)
	except (zipfile.BadZipFile, OSError) as err:
		raise FeedLoadError('Failed to open feed archive: {}'.format(err), err) from err
	with zf:
		# Some feeds are zipped with a top-level directory
		members = dict()
		for name in sorted(zf.namelist(), key=lambda n: n.count('/')):
			if not name.endswith('/'): members.setdefault(posixpath.basename(name), name)
		def open_table(filename):
			if filename not in members:
				raise TableNotFound(filename, 'no such file in archive')
			return io.TextIOWrapper(zf.open(members[filename]), encoding=conf.encoding, newline='')
		yield open_table


def iter_gtfs_tuples(src, filename):
	'Yield (line_number, row_tuple) for each non-empty csv line, with namedtuple made from header.'
	log.debug('Processing gtfs file: {}', filename)
	if filename.endswith('.txt'): filename = filename[:-4]
	tuple_t = ''.join(' '.join(filename.rstrip('s').split('_')).title().split())
	src_csv = csv.reader(src)
	try: fields = list(v.strip() for v in next(src_csv))
	except StopIteration: return # empty file
	tuple_t = namedtuple(tuple_t, fields, rename=True)
	for line in src_csv:
		if not line or (len(line) == 1 and not line[0].strip()): continue
		if len(line) != len(fields):
			raise RecordError( 'expected {} values as per header,'
				' got {}'.format(len(fields), len(line)), line=src_csv.line_num )
		yield src_csv.line_num, tuple_t(*line)


### Field value conversion

def field(row, k, conv=None, required=False, default=None):
	v = (getattr(row, k, None) or '').strip()
	if not v:
		if required: raise RecordError('missing required value', k)
		return default
	if not conv: return v
	try: return conv(v)
	except ValueError as err: raise RecordError(str(err), k) from None

def conv_tri_state(v):
	if v == '0': return None # unknown / not specified
	if v == '1': return True
	if v == '2': return False
	raise ValueError('invalid value (must be 0, 1 or 2): {!r}'.format(v))

def conv_uint(v):
	if not v.isdigit(): raise ValueError('not a non-negative integer: {!r}'.format(v))
	return int(v)

def conv_float(v):
	try: return float(v)
	except ValueError: raise ValueError('not a number: {!r}'.format(v)) from None

def conv_location_type(v):
	if v not in {'0', '1', '2', '3', '4'}:
		raise ValueError('invalid location_type (must be 0-4): {!r}'.format(v))
	return int(v)

def conv_timezone(v):
	try: pytz.timezone(v)
	except pytz.UnknownTimeZoneError: raise ValueError('unknown timezone: {!r}'.format(v)) from None
	return v


def parse_stop(s):
	loc_type = field(s, 'location_type', conv_location_type, default=0)
	name, lat, lon, parent = field(s, 'stop_name'),\
		field(s, 'stop_lat', conv_float), field(s, 'stop_lon', conv_float), field(s, 'parent_station')
	if loc_type in (0, 1, 2):
		for k, v in zip(['stop_name', 'stop_lat', 'stop_lon'], [name, lat, lon]):
			if v is None: raise RecordError('required for location_type={}'.format(loc_type), k)
	if loc_type in (2, 3, 4) and not parent:
		raise RecordError('required for location_type={}'.format(loc_type), 'parent_station')
	loc_kws = dict(name=name, lat=lat, lon=lon)
	if loc_type == 1:
		if parent: raise RecordError('stations (location_type=1) cannot have it', 'parent_station')
	else: loc_kws['parent_station'] = parent
	return t.feed.Stop(
		stop_id=field(s, 'stop_id', required=True),
		location=t.feed.location_types[loc_type](**loc_kws),
		stop_code=field(s, 'stop_code'),
		tts_stop_name=field(s, 'tts_stop_name'),
		stop_desc=field(s, 'stop_desc'),
		zone_id=field(s, 'zone_id'),
		stop_url=field(s, 'stop_url'),
		stop_timezone=field(s, 'stop_timezone', conv_timezone),
		wheelchair_boarding=field(s, 'wheelchair_boarding', conv_tri_state),
		level_id=field(s, 'level_id'),
		platform_code=field(s, 'platform_code') )

def parse_route(s):
	route_id = field(s, 'route_id', required=True)
	try:
		name = t.feed.make_route_name(
			short=field(s, 'route_short_name'), long=field(s, 'route_long_name') )
	except ValueError as err: raise RecordError(str(err)) from None
	return t.feed.Route(
		route_id=route_id, route_name=name,
		route_type=field(s, 'route_type', t.feed.RouteType.parse, default=t.feed.RouteType.tram),
		agency_id=field(s, 'agency_id'),
		route_desc=field(s, 'route_desc'),
		route_url=field(s, 'route_url'),
		route_color=field(s, 'route_color', t.feed.Color.parse),
		route_text_color=field(s, 'route_text_color', t.feed.Color.parse),
		route_sort_order=field(s, 'route_sort_order', conv_uint),
		continuous_pickup=field(s, 'continuous_pickup', t.feed.ContinuityPolicy.parse),
		continuous_drop_off=field(s, 'continuous_drop_off', t.feed.ContinuityPolicy.parse),
		network_id=field(s, 'network_id') )

def parse_trip(s):
	return t.feed.Trip(
		trip_id=field(s, 'trip_id', required=True),
		route_id=field(s, 'route_id', required=True),
		service_id=field(s, 'service_id', required=True),
		trip_headsign=field(s, 'trip_headsign'),
		trip_short_name=field(s, 'trip_short_name'),
		direction_id=field(s, 'direction_id', t.feed.Direction.parse),
		block_id=field(s, 'block_id'),
		shape_id=field(s, 'shape_id'),
		wheelchair_accessible=field(s, 'wheelchair_accessible', conv_tri_state),
		bikes_allowed=field(s, 'bikes_allowed', conv_tri_state) )

def parse_stop_time(s):
	return t.feed.StopTime(
		trip_id=field(s, 'trip_id', required=True),
		stop_sequence=field(s, 'stop_sequence', conv_uint, required=True),
		stop_id=field(s, 'stop_id'),
		arrival_time=field(s, 'arrival_time', u.clock_parse),
		departure_time=field(s, 'departure_time', u.clock_parse),
		location_group_id=field(s, 'location_group_id'),
		location_id=field(s, 'location_id'),
		stop_headsign=field(s, 'stop_headsign'),
		start_pickup_drop_off_window=field(s, 'start_pickup_drop_off_window', u.clock_parse),
		end_pickup_drop_off_window=field(s, 'end_pickup_drop_off_window', u.clock_parse),
		pickup_type=field(s, 'pickup_type', t.feed.StopPolicy.parse),
		drop_off_type=field(s, 'drop_off_type', t.feed.StopPolicy.parse),
		continuous_pickup=field(s, 'continuous_pickup', t.feed.ContinuityPolicy.parse),
		continuous_drop_off=field(s, 'continuous_drop_off', t.feed.ContinuityPolicy.parse),
		shape_dist_traveled=field(s, 'shape_dist_traveled', conv_float),
		timepoint=field(s, 'timepoint', t.feed.Timepoint.parse),
		pickup_booking_rule_id=field(s, 'pickup_booking_rule_id'),
		drop_off_booking_rule_id=field(s, 'drop_off_booking_rule_id') )


### Loading

def load_table(open_table, filename, parse_func, add_func, events):
	table, count = filename[:-4].replace('_', ' '), 0
	with open_table(filename) as src:
		events.on_table_opened(filename)
		try:
			for line, row in iter_gtfs_tuples(src, filename):
				try: rec = parse_func(row)
				except RecordError as err:
					err.line = line
					raise
				add_func(rec, line)
				count += 1
		except RecordError as err: raise TableLoadError(table, err) from err
		except (csv.Error, UnicodeDecodeError) as err:
			raise TableLoadError(table, err) from err
	log.debug('Loaded {:,} record(s) from {}', count, filename)
	events.on_table_loaded(filename, count)
	return count

def index_adder(coll, kind):
	def add(rec, line):
		if coll.add(rec) is not rec:
			log.warning( 'Duplicate {} id {!r} on line {},'
				' keeping first record with it', kind, getattr(rec, coll.id_attr), line )
	return add

def check_stop_hierarchy(stops):
	'Raise StopHierarchyError on parent_station refs to missing stops or loops in these.'
	acyclic = set()
	for stop in stops:
		chain, stop_id = list(), stop.stop_id
		while stop_id and stop_id not in acyclic:
			if stop_id in chain:
				raise StopHierarchyError('Loop in parent_station references: {}'.format(
					' -> '.join(chain[chain.index(stop_id):] + [stop_id]) ))
			chain.append(stop_id)
			parent = stops.get(stop_id).parent_station
			if parent and parent not in stops:
				raise StopHierarchyError(
					'Stop {!r} references missing parent_station: {!r}'.format(stop_id, parent) )
			stop_id = parent
		acyclic.update(chain)

def load_schedule(source=None, conf=None, events=None):
	'''Load Schedule from GTFS feed url, zip file, extracted directory or zip bytes.
		Uses conf.feed_url if source is not specified.'''
	if not conf: conf = GTFSConf()
	if not events: events = LoaderEvents()
	if source is None: source = conf.feed_url
	schedule = t.schedule.Schedule()
	with open_feed(source, conf, events) as open_table:
		load_table( open_table, 'stops.txt', parse_stop,
			index_adder(schedule.stops, 'stop'), events )
		load_table( open_table, 'routes.txt', parse_route,
			index_adder(schedule.routes, 'route'), events )
		load_table( open_table, 'trips.txt', parse_trip,
			index_adder(schedule.trips, 'trip'), events )
		load_table( open_table, 'stop_times.txt', parse_stop_time,
			lambda rec, line: schedule.stop_times.add(rec), events )
	if conf.check_stop_hierarchy: check_stop_hierarchy(schedule.stops)
	if conf.sort_stop_times: schedule.stop_times = schedule.stop_times.sorted()
	log.debug( 'Loaded schedule: stops={:,}, routes={:,},'
		' trips={:,}, stop_times={:,}', *map(len, [ schedule.stops,
			schedule.routes, schedule.trips, schedule.stop_times ]) )
	return schedule
