import itertools as it, operator as op, functools as ft
from collections import OrderedDict
from pathlib import Path
import os, sys, io, re, unittest, tempfile, shutil, zipfile

import yaml # PyYAML module is required for tests

path_project = Path(__file__).parent.parent
sys.path.insert(1, str(path_project))
import gtfs_drill as gd

verbose = os.environ.get('GD_DEBUG')
if verbose:
	gd.u.logging.basicConfig(
		format='%(asctime)s :: %(name)s %(levelname)s :: %(message)s',
		datefmt='%Y-%m-%d %H:%M:%S', level=gd.u.logging.DEBUG )


def yaml_load(stream, dict_cls=OrderedDict, loader_cls=yaml.SafeLoader):
	if not hasattr(yaml_load, '_cls'):
		class CustomLoader(loader_cls): pass
		def construct_mapping(loader, node):
			loader.flatten_mapping(node)
			return dict_cls(loader.construct_pairs(node))
		CustomLoader.add_constructor(
			yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG, construct_mapping )
		# Only resolve plain ints, so that e.g. 0800 or 1.10 ids stay strings
		res_map = CustomLoader.yaml_implicit_resolvers = CustomLoader.yaml_implicit_resolvers.copy()
		res_int = list('-+0123456789')
		for c in res_int: del res_map[c]
		CustomLoader.add_implicit_resolver(
			'tag:yaml.org,2002:int',
			re.compile(r'^[-+]?(?:0|[1-9][0-9_]*)$'), res_int )
		yaml_load._cls = CustomLoader
	return yaml.load(stream, yaml_load._cls)

def load_test_data(path_dir, path_stem, name):
	'Load test data from specified YAML file.'
	with (path_dir / '{}.test.{}.yaml'.format(path_stem, name)).open() as src:
		return yaml_load(src)


class FeedTestFixture:
	'''GTFS feed tables from YAML test data, which can be
		written to a temp dir, zip file or bytes to load them from there.'''

	def __init__(self, name='basic', path_file=None):
		self.path_file = Path(path_file or Path(__file__).parent / 'feed.py')
		self.data = load_test_data(self.path_file.parent, self.path_file.stem, name)
		self.tables = OrderedDict(self.data['tables'])
		self.expected = self.data.get('expected') or dict()
		self._tmp_dirs = list()

	def cleanup(self):
		for p in self._tmp_dirs: shutil.rmtree(p, ignore_errors=True)
		self._tmp_dirs.clear()

	def tmp_dir(self):
		p = tempfile.mkdtemp(prefix='gtfs-drill-test.')
		self._tmp_dirs.append(p)
		return Path(p)

	def table_updates(self, tables=None, drop=None):
		tables = OrderedDict(self.tables, **(tables or dict()))
		for k in drop or list(): tables.pop(k, None)
		return tables

	def write_dir(self, **update_kws):
		path = self.tmp_dir()
		for name, contents in self.table_updates(**update_kws).items():
			(path / name).write_text(contents, encoding='utf-8')
		return path

	def zip_bytes(self, prefix='', **update_kws):
		buff = io.BytesIO()
		with zipfile.ZipFile(buff, 'w') as dst:
			for name, contents in self.table_updates(**update_kws).items():
				dst.writestr(prefix + name, contents.encode('utf-8'))
		return buff.getvalue()

	def write_zip(self, **update_kws):
		path = self.tmp_dir() / 'feed.zip'
		path.write_bytes(self.zip_bytes(**update_kws))
		return path

	def load(self, **load_kws):
		return gd.gtfs.load_schedule(self.zip_bytes(), **load_kws)


class FeedTestCase(unittest.TestCase):
	'Base TestCase with fixture feed schedule loaded once per class.'

	fixture_name = 'basic'

	@classmethod
	def setUpClass(cls):
		cls.fx = FeedTestFixture(cls.fixture_name)
		cls.schedule = cls.fx.load()
		cls.root = gd.nav.Node.root(cls.schedule)

	@classmethod
	def tearDownClass(cls): cls.fx.cleanup()

	def ids(self, coll): return list(coll.ids())

	def assertProjection(self, schedule, expected):
		for k in 'stops', 'routes', 'trips':
			if k not in expected: continue
			self.assertEqual(self.ids(getattr(schedule, k)), list(expected[k]), k)
		if 'stop_times' in expected:
			self.assertEqual(len(schedule.stop_times), expected['stop_times'], 'stop_times')

	def assertClosed(self, schedule):
		'Check referential closure of projected schedule.'
		for st in schedule.stop_times:
			self.assertIn(st.trip_id, schedule.trips)
			if st.stop_id: self.assertIn(st.stop_id, schedule.stops)
		for trip in schedule.trips: self.assertIn(trip.route_id, schedule.routes)


def run_cmd(node, line):
	'Run command at node, returning its output lines.'
	out = io.StringIO()
	gd.commands.interpret(node, line, out)
	return out.getvalue().splitlines()
