### Projections - referentially-closed subsets of a Schedule,
###  reachable from a single route, stop (with its descendants) or trip.

# Projections never modify source schedule, only build new collections,
#  sharing same frozen records with it.

import itertools as it, operator as op, functools as ft

from . import utils as u, types as t


log = u.get_logger('gd.engine')


class ProjectionError(Exception):
	def __init__(self, msg, cause=None):
		super(ProjectionError, self).__init__(msg)
		self.cause = cause
		if cause is not None: self.__cause__ = cause

class NoSuchRoute(ProjectionError):
	def __init__(self, route_id):
		super(NoSuchRoute, self).__init__('No such route: {}'.format(route_id))
		self.route_id = route_id

class NoSuchStop(ProjectionError):
	def __init__(self, stop_id):
		super(NoSuchStop, self).__init__('No such stop: {}'.format(stop_id))
		self.stop_id = stop_id

class NoSuchTrip(ProjectionError):
	def __init__(self, trip_id):
		super(NoSuchTrip, self).__init__('No such trip: {}'.format(trip_id))
		self.trip_id = trip_id

class StopHierarchyCycle(ProjectionError):
	def __init__(self, stop_id):
		super(StopHierarchyCycle, self).__init__(
			'Loop in parent_station references at stop: {}'.format(stop_id) )
		self.stop_id = stop_id

class ErrorGettingDescendants(ProjectionError):
	def __init__(self, stop_id, cause):
		super(ErrorGettingDescendants, self).__init__(
			'Error getting descendants for stop {}: {}'.format(stop_id, cause), cause )
		self.stop_id = stop_id


def project_by_route(schedule, route_id):
	'''Return Schedule with specified route, its trips,
		stop times of these trips and stops visited by them.'''
	route = schedule.routes.get(route_id)
	if route is None: raise NoSuchRoute(route_id)

	trips = t.schedule.Trips(trip for trip in schedule.trips if trip.route_id == route_id)

	stop_times, stop_visits = t.schedule.StopTimes(), dict() # stop_id -> [stop_time, ...]
	for st in schedule.stop_times:
		if st.trip_id not in trips: continue
		stop_times.add(st)
		# Rows with location_group_id/location_id instead of stop_id are kept,
		#  as they still belong to the trip, but can't add any stops.
		# Stop projection can't reach such rows, so it can return fewer of them for same trip.
		if st.stop_id: stop_visits.setdefault(st.stop_id, list()).append(st)

	stops = t.schedule.Stops(stop for stop in schedule.stops if stop.stop_id in stop_visits)

	res = t.schedule.Schedule(
		stops=stops, routes=t.schedule.Routes([route]), trips=trips, stop_times=stop_times )
	log.debug('Projection for route {!r}: {}', route_id, res)
	return res


def iter_stop_descendants(stops, stop_id, children=None):
	'''Yield stop and all its children (via parent_station) recursively, depth-first, parents first.
		Uses explicit stack, so hierarchy depth is not limited by python recursion limit.
		Errors for a missing or looped child stop are wrapped
			into ErrorGettingDescendants for every stop up the chain to the starting one.'''
	if children is None: children = t.schedule.stop_children_index(stops)
	if stop_id not in stops: raise NoSuchStop(stop_id)
	stack, seen = [(stop_id, None)], set() # parents link is (parent_id, parents) or None
	while stack:
		sid, parents = stack.pop()
		err = StopHierarchyCycle(sid) if sid in seen\
			else (NoSuchStop(sid) if sid not in stops else None)
		if err:
			while parents:
				parent_id, parents = parents
				err = ErrorGettingDescendants(parent_id, err)
			raise err
		seen.add(sid)
		yield stops[sid]
		parents = sid, parents
		stack.extend((child_id, parents) for child_id in reversed(children.get(sid, ())))

def project_by_stop(schedule, stop_id):
	'''Return Schedule with specified stop and all its descendants (platforms, entrances, etc),
		stop times at these, trips making these stops and routes of such trips.'''
	children = t.schedule.stop_children_index(schedule.stops)
	stops = t.schedule.Stops(iter_stop_descendants(schedule.stops, stop_id, children))

	stop_times = t.schedule.StopTimes(
		st for st in schedule.stop_times if st.stop_id in stops )

	trips, route_trips = t.schedule.Trips(), dict() # route_id -> [trip, ...]
	for trip in schedule.trips:
		if trip.trip_id not in stop_times: continue
		trips.add(trip)
		route_trips.setdefault(trip.route_id, list()).append(trip)
	if len(stop_times.trip_ids()) != len(trips): # stop times for trips missing from trips.txt
		stop_times = t.schedule.StopTimes(st for st in stop_times if st.trip_id in trips)

	routes = t.schedule.Routes(route for route in schedule.routes if route.route_id in route_trips)

	res = t.schedule.Schedule(stops=stops, routes=routes, trips=trips, stop_times=stop_times)
	log.debug('Projection for stop {!r}: {}', stop_id, res)
	return res


def project_by_trip(schedule, trip_id):
	'Return Schedule with specified trip, its stop times, stops and route.'
	trip = schedule.trips.get(trip_id)
	if trip is None: raise NoSuchTrip(trip_id)
	stop_times = t.schedule.StopTimes(schedule.stop_times.for_trip(trip_id))
	stop_ids = set(st.stop_id for st in stop_times if st.stop_id)
	stops = t.schedule.Stops(stop for stop in schedule.stops if stop.stop_id in stop_ids)
	route = schedule.routes.get(trip.route_id)
	res = t.schedule.Schedule(
		stops=stops, routes=t.schedule.Routes([route] if route else None),
		trips=t.schedule.Trips([trip]), stop_times=stop_times )
	log.debug('Projection for trip {!r}: {}', trip_id, res)
	return res
