import itertools as it, operator as op, functools as ft
import unittest

from . import _common as c

f, s, cmds = c.gd.t.feed, c.gd.t.schedule, c.gd.commands


class ParseTests(unittest.TestCase):

	def test_parse(self):
		path = cmds.parse_command('stops.A.routes.list')
		self.assertEqual(path.segments, ('stops', 'A', 'routes', 'list'))
		self.assertEqual((path.head, path.rest.segments), ('stops', ('A', 'routes', 'list')))
		self.assertEqual(str(path.rest), 'A.routes.list')
		self.assertEqual(cmds.parse_command('  stops . A\n').segments, ('stops', 'A'))
		self.assertEqual(cmds.parse_command('info').segments, ('info',))
		self.assertIs(cmds.parse_command(path), path)

	def test_empty(self):
		for line in '', '  ', '\n':
			path = cmds.parse_command(line)
			self.assertFalse(path)
			self.assertEqual((len(path), path.head, str(path)), (0, None, ''))

	def test_syntax_errors(self):
		for line in 'stops..list', '.stops', 'stops.', 'stops. .list', '.':
			with self.assertRaises(cmds.CommandSyntaxError, msg=line) as ctx:
				cmds.parse_command(line)
			self.assertIsInstance(ctx.exception, cmds.InvalidCommand)


class InterpretTests(c.FeedTestCase):

	def test_root_info(self):
		self.assertEqual(c.run_cmd(self.root, 'info'), [
			'Feed', '  Stops: 8', '  Routes: 3', '  Trips: 4', '  Stop times: 7' ])

	def test_node_info(self):
		self.assertEqual(c.run_cmd(self.root, 'stops.A.info'), [
			'Stop A: Downtown', '  Stops: 6', '  Routes: 1', '  Trips: 2', '  Stop times: 2' ])
		self.assertEqual(c.run_cmd(self.root, 'stops.AN.info')[0], 'Stop AN')
		self.assertEqual(c.run_cmd(self.root, 'routes.R1.info')[0], 'Route R1: Red Line (R)')
		self.assertEqual(c.run_cmd(self.root, 'trips.T4.info')[0], 'Trip T4')

	def test_lists(self):
		self.assertEqual(c.run_cmd(self.root, 'routes.list'), [
			'R1: Red Line (R)', 'R2: Silver Line', 'R3: 77' ])
		self.assertEqual(c.run_cmd(self.root, 'stops.list'), [
			'A: Downtown', 'A1: Platform 1', 'A2: Platform 2', 'AE: Downtown Entrance',
			'AN: Unnamed Location', 'AB: Boarding Area 1', 'B: Harbor', 'C: Airport' ])
		self.assertEqual(c.run_cmd(self.root, 'trips.list'), [
			'T1: Harbor (route R1)', 'T2: Downtown (route R1)',
			'T3: 77X (route R3)', 'T4: No headsign (route R3)' ])

	def test_collection_info(self):
		self.assertEqual(c.run_cmd(self.root, 'routes.info'), ['Routes: 3'])
		self.assertEqual(c.run_cmd(self.root, 'stops.info'), ['Stops: 8'])
		self.assertEqual(c.run_cmd(self.root, 'trips.info.whatever'), ['Trips: 4'])
		self.assertEqual(c.run_cmd(self.root, 'stops.list.x.y'), c.run_cmd(self.root, 'stops.list'))

	def test_list_info_agree(self):
		for node in self.root, self.root.child_for_stop('A'), self.root.child_for_route('R3'):
			for k in 'stops', 'routes', 'trips':
				n, = c.run_cmd(node, '{}.info'.format(k))
				self.assertEqual(n, '{}: {}'.format(k.title(), len(c.run_cmd(node, '{}.list'.format(k)))))

	def test_nested(self):
		self.assertEqual(c.run_cmd(self.root, 'stops.A.routes.list'), ['R1: Red Line (R)'])
		self.assertEqual(
			c.run_cmd(self.root, 'stops.A.routes.R1.stops.list'),
			['A1: Platform 1', 'A2: Platform 2'] )
		self.assertEqual(
			c.run_cmd(self.root, 'routes.R3.trips.T3.stops.list'), ['B: Harbor', 'C: Airport'] )
		self.assertEqual(c.run_cmd(self.root, 'routes.R2.stops.list'), [])
		self.assertEqual(c.run_cmd(self.root, 'stops.B.routes.list'), ['R1: Red Line (R)', 'R3: 77'])

	def test_unreachable_route_at_stop(self):
		with self.assertRaises(cmds.ErrorInterpretingSubcommand) as ctx:
			c.run_cmd(self.root, 'stops.A.routes.R3.list')
		err = ctx.exception
		self.assertEqual(list(map(type, err.chain())), [
			cmds.ErrorInterpretingSubcommand, cmds.ErrorExecutingCommandForStop,
			cmds.ErrorInterpretingSubcommand, cmds.InvalidCommand ])
		self.assertEqual(str(err), 'Error interpreting stops subcommand:'
			' Error executing command for stop A: Error interpreting routes subcommand:'
			' Invalid command: R3.list' )
		self.assertIs(err.__cause__, err.cause)

	def test_invalid_commands(self):
		for line, err_cls, msg in [
				('', cmds.InvalidCommand, 'Invalid command: '),
				('foo', cmds.InvalidCommand, 'Invalid command: foo'),
				('list', cmds.InvalidCommand, 'Invalid command: list'),
				('stops', cmds.SubcommandRequired, 'Stops subcommand required'),
				('trips', cmds.SubcommandRequired, 'Trips subcommand required'),
				('stops..list', cmds.CommandSyntaxError, 'Invalid command: stops..list (empty path segment)'),
				( 'stops.X.info', cmds.ErrorInterpretingSubcommand,
					'Error interpreting stops subcommand: Invalid command: X.info' ),
				( 'routes.R1', cmds.ErrorInterpretingSubcommand,
					'Error interpreting routes subcommand: Error executing command for route R1: Invalid command: ' ),
				( 'stops.A.stops', cmds.ErrorInterpretingSubcommand,
					'Error interpreting stops subcommand: Error executing command'
						' for stop A: Stops subcommand required' ) ]:
			with self.assertRaises(err_cls, msg=line) as ctx: c.run_cmd(self.root, line)
			self.assertEqual(str(ctx.exception), msg)
			self.assertIsInstance(ctx.exception, cmds.CommandError)

	def test_projection_failure(self):
		stops = s.Stops(
			f.Stop(stop_id, f.StopDetails(stop_id, 0.0, 0.0, parent))
			for stop_id, parent in [('X', 'Z'), ('Y', 'X'), ('Z', 'Y')] )
		root = c.gd.nav.Node.root(s.Schedule(stops=stops))
		with self.assertRaises(cmds.ErrorInterpretingSubcommand) as ctx: c.run_cmd(root, 'stops.X.info')
		chain = list(ctx.exception.chain())
		self.assertIsInstance(chain[1], cmds.ErrorGettingStop)
		self.assertEqual(chain[1].entity_id, 'X')
		self.assertIsInstance(chain[2], c.gd.engine.ErrorGettingDescendants)
		self.assertIsInstance(chain[-1], c.gd.engine.StopHierarchyCycle)
		self.assertTrue(str(ctx.exception).startswith(
			'Error interpreting stops subcommand: Error getting stop: Error getting descendants for stop X:' ))


class NavigateTests(c.FeedTestCase):

	def test_navigate(self):
		node = cmds.navigate(self.root, 'stops.A.routes.R1')
		self.assertEqual((node.kind, node.node_id, node.path()), ('route', 'R1', 'stops.A.routes.R1'))
		self.assertEqual(node.parent.node_id, 'A')
		self.assertIs(cmds.navigate(node, ''), node)
		trip = cmds.navigate(node, 'trips.T1')
		self.assertEqual(trip.path(), 'stops.A.routes.R1.trips.T1')

	def test_navigate_errors(self):
		for line, err_cls in [
				('stops', cmds.SubcommandRequired),
				('info', cmds.InvalidCommand),
				('stops.ZZ', cmds.ErrorInterpretingSubcommand),
				('stops.A.routes', cmds.ErrorInterpretingSubcommand),
				('stops.A.routes.R3', cmds.ErrorInterpretingSubcommand),
				('stops.A..routes', cmds.CommandSyntaxError) ]:
			with self.assertRaises(err_cls, msg=line): cmds.navigate(self.root, line)
		with self.assertRaises(cmds.ErrorInterpretingSubcommand) as ctx:
			cmds.navigate(self.root, 'stops.A.routes.R3')
		self.assertIsInstance(list(ctx.exception.chain())[-1], cmds.InvalidCommand)


def load_tests(loader, tests, pattern):
	loader = loader or unittest.defaultTestLoader
	return unittest.TestSuite(map( loader.loadTestsFromTestCase,
		[ParseTests, InterpretTests, NavigateTests] ))
