### Navigation tree - feed (root) node and nodes projected from it

from . import utils as u, engine


collection_kinds = dict(routes='route', stops='stop', trips='trip')
kind_collections = dict((v, k) for k, v in collection_kinds.items())


@u.attr_struct(frozen=True, repr=False, eq=False)
class Node:
	'''Schedule with a place in navigation tree.
		Root node has full feed schedule and node_id="", all others - a projection
			of their parent's schedule for route/stop/trip with that node_id.
		Parent link is only used for going back up (lineage/path), never for lookups.'''

	schedule = u.attr_init()
	parent = u.attr_init(None)
	node_id = u.attr_init('')
	node_name = u.attr_init(None)
	kind = u.attr_init(None) # None for root, or route/stop/trip

	@classmethod
	def root(cls, schedule): return cls(schedule)

	@property
	def is_root(self): return self.parent is None

	def child_for_route(self, route_id):
		schedule = engine.project_by_route(self.schedule, route_id)
		return Node( schedule, self, route_id,
			schedule.routes[route_id].display_name, 'route' )

	def child_for_stop(self, stop_id):
		schedule = engine.project_by_stop(self.schedule, stop_id)
		return Node(schedule, self, stop_id, schedule.stops[stop_id].name, 'stop')

	def child_for_trip(self, trip_id):
		schedule = engine.project_by_trip(self.schedule, trip_id)
		trip = schedule.trips[trip_id]
		return Node( schedule, self, trip_id,
			u.get_any(trip, 'trip_headsign', 'trip_short_name'), 'trip' )

	def child(self, kind, node_id):
		return getattr(self, 'child_for_{}'.format(kind))(node_id)

	def lineage(self):
		'Return list of nodes from root to this one.'
		nodes, node = list(), self
		while node is not None:
			nodes.append(node)
			node = node.parent
		return nodes[::-1]

	def top(self): return self.lineage()[0]

	def path(self):
		'Return dot-separated collection.id path to this node from root, empty for root.'
		return '.'.join(
			'{}.{}'.format(kind_collections[node.kind], node.node_id)
			for node in self.lineage()[1:] )

	def __repr__(self):
		return '<Node {}: {!r}>'.format(self.path() or '(root)', self.schedule)
