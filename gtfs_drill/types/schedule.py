import itertools as it, operator as op, functools as ft

from .. import utils as u


class RecordIndex:
	'Insertion-ordered collection of records, keyed by their id attribute.'

	id_attr = None

	def __init__(self, records=None):
		self.set_idx = dict()
		if records:
			for rec in records: self.add(rec)

	def add(self, rec):
		'Add record, returning already-present one if same id was added before.'
		rec_id = getattr(rec, self.id_attr)
		if rec_id in self.set_idx: rec = self.set_idx[rec_id]
		else: self.set_idx[rec_id] = rec
		return rec

	def get(self, rec_id, default=None):
		if hasattr(rec_id, self.id_attr): rec_id = getattr(rec_id, self.id_attr)
		return self.set_idx.get(rec_id, default)

	def ids(self): return list(self.set_idx.keys())

	def __getitem__(self, rec_id): return self.set_idx[rec_id]
	def __contains__(self, rec_id): return rec_id in self.set_idx
	def __len__(self): return len(self.set_idx)
	def __iter__(self): return iter(self.set_idx.values())

	def __repr__(self):
		return '<{} [{}]>'.format(self.__class__.__name__, len(self))

class Stops(RecordIndex): id_attr = 'stop_id'
class Routes(RecordIndex): id_attr = 'route_id'
class Trips(RecordIndex): id_attr = 'trip_id'


class StopTimes:
	'''StopTime entries grouped by trip_id.
		Both groups and entries within these keep insertion order,
			sorted() can be used to get copy with entries ordered by stop_sequence.'''

	def __init__(self, stop_times=None):
		self.set_idx = dict()
		if stop_times:
			for st in stop_times: self.add(st)

	def add(self, st): self.set_idx.setdefault(st.trip_id, list()).append(st)

	def for_trip(self, trip_id): return tuple(self.set_idx.get(trip_id, ()))
	def trip_ids(self): return list(self.set_idx.keys())

	def sorted(self):
		sts = StopTimes()
		for trip_id, trip_sts in self.set_idx.items():
			sts.set_idx[trip_id] = sorted(trip_sts, key=op.attrgetter('stop_sequence'))
		return sts

	def __contains__(self, trip_id): return trip_id in self.set_idx
	def __len__(self): return sum(map(len, self.set_idx.values()))
	def __iter__(self): return it.chain.from_iterable(self.set_idx.values())

	def __repr__(self):
		return '<StopTimes [{} in {} trip(s)]>'.format(len(self), len(self.set_idx))


@u.attr_struct(repr=False)
class Schedule:
	stops = u.attr_init(Stops)
	routes = u.attr_init(Routes)
	trips = u.attr_init(Trips)
	stop_times = u.attr_init(StopTimes)

	def counts(self):
		return dict( stops=len(self.stops), routes=len(self.routes),
			trips=len(self.trips), stop_times=len(self.stop_times) )

	def __repr__(self):
		return ( '<Schedule stops={stops}'
			' routes={routes} trips={trips} stop_times={stop_times}>' ).format(**self.counts())


def stop_children_index(stops):
	'Return {parent_station: [child_stop_id, ...]} mapping, built in one pass over stops.'
	children = dict()
	for stop in stops:
		if not stop.parent_station: continue
		children.setdefault(stop.parent_station, list()).append(stop.stop_id)
	return children
