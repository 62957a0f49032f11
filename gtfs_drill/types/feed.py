### Feed records: stops, routes, trips, stop times

# All records are immutable once loaded,
#  projections only ever regroup them into new collections.

import enum

from .. import utils as u


class FeedEnum(enum.Enum):

	@classmethod
	def parse(cls, val):
		'Convert numeric feed value (str or int) to enum member, raising ValueError if invalid.'
		try: return cls(int(val))
		except ValueError:
			raise ValueError('invalid {} value: {!r}'.format(cls.__name__, val)) from None

class RouteType(FeedEnum):
	tram, subway, rail, bus, ferry, cable_tram,\
		aerial_lift, funicular, trolleybus, monorail = range(10)

class ContinuityPolicy(FeedEnum):
	continuous, not_continuous, prearrange, coordinate_with_driver = range(4)

class StopPolicy(FeedEnum):
	regular, unavailable, prearrange, coordinate_with_driver = range(4)

class Timepoint(FeedEnum): approximate, exact = range(2)

class Direction(FeedEnum): a, b = range(2)


### Stops

# Each location_type has its own set of required fields,
#  so these are separate types instead of one with everything optional.
# All of them expose same name/lat/lon/parent_station attributes,
#  with None for ones that can't be set for that location type.

@u.attr_struct(frozen=True)
class StopDetails:
	location_type = 0
	name = u.attr_init()
	lat = u.attr_init()
	lon = u.attr_init()
	parent_station = u.attr_init(None)

@u.attr_struct(frozen=True)
class StationDetails:
	keys = 'name lat lon'
	location_type = 1
	parent_station = None # stations are always hierarchy roots

@u.attr_struct(frozen=True)
class EntranceExitDetails:
	keys = 'name lat lon parent_station'
	location_type = 2

@u.attr_struct(frozen=True)
class GenericNodeDetails:
	location_type = 3
	parent_station = u.attr_init()
	name = u.attr_init(None)
	lat = u.attr_init(None)
	lon = u.attr_init(None)

@u.attr_struct(frozen=True)
class BoardingAreaDetails:
	location_type = 4
	parent_station = u.attr_init()
	name = u.attr_init(None)
	lat = u.attr_init(None)
	lon = u.attr_init(None)

location_types = dict( (cls.location_type, cls) for cls in [ StopDetails,
	StationDetails, EntranceExitDetails, GenericNodeDetails, BoardingAreaDetails ] )


@u.attr_struct(frozen=True)
class Stop:
	stop_id = u.attr_init()
	location = u.attr_init()
	stop_code = u.attr_init(None)
	tts_stop_name = u.attr_init(None)
	stop_desc = u.attr_init(None)
	zone_id = u.attr_init(None)
	stop_url = u.attr_init(None)
	stop_timezone = u.attr_init(None)
	wheelchair_boarding = u.attr_init(None) # None - unknown, True/False - accessible or not
	level_id = u.attr_init(None)
	platform_code = u.attr_init(None)

	@property
	def location_type(self): return self.location.location_type
	@property
	def name(self): return self.location.name
	@property
	def lat(self): return self.location.lat
	@property
	def lon(self): return self.location.lon
	@property
	def parent_station(self): return self.location.parent_station

	def __str__(self):
		if not self.name: return '<Stop {}>'.format(self.stop_id)
		return '<Stop {} [{}]>'.format(self.name, self.stop_id)


### Routes

@u.attr_struct(frozen=True)
class RouteNameShort:
	keys = 'short'
	long = None

@u.attr_struct(frozen=True)
class RouteNameLong:
	keys = 'long'
	short = None

@u.attr_struct(frozen=True)
class RouteNameLongAndShort: keys = 'long short'

def make_route_name(short=None, long=None):
	'Return RouteName* variant for whichever names are set, ValueError if none of them are.'
	if short and long: return RouteNameLongAndShort(long, short)
	if short: return RouteNameShort(short)
	if long: return RouteNameLong(long)
	raise ValueError('route_short_name or route_long_name is required')


@u.attr_struct(frozen=True)
class Color:
	keys = 'r g b'

	@classmethod
	def parse(cls, hex_str):
		hex_str = hex_str.strip().lstrip('#')
		if len(hex_str) != 6:
			raise ValueError('invalid color (must be 6 hex digits): {!r}'.format(hex_str))
		try: return cls(*(int(hex_str[n:n+2], 16) for n in range(0, 6, 2)))
		except ValueError: raise ValueError('invalid color: {!r}'.format(hex_str)) from None

	def __str__(self): return '{:02X}{:02X}{:02X}'.format(self.r, self.g, self.b)


@u.attr_struct(frozen=True)
class Route:
	route_id = u.attr_init()
	route_name = u.attr_init() # one of the RouteName* types
	route_type = u.attr_init(RouteType.tram)
	agency_id = u.attr_init(None)
	route_desc = u.attr_init(None)
	route_url = u.attr_init(None)
	route_color = u.attr_init(None)
	route_text_color = u.attr_init(None)
	route_sort_order = u.attr_init(None)
	continuous_pickup = u.attr_init(None)
	continuous_drop_off = u.attr_init(None)
	network_id = u.attr_init(None)

	@property
	def long_name(self): return self.route_name.long
	@property
	def short_name(self): return self.route_name.short
	@property
	def name(self): return self.route_name.long or self.route_name.short

	@property
	def display_name(self):
		'"Long (Short)" if route has both names, otherwise whichever one it has.'
		if self.long_name and self.short_name:
			return '{} ({})'.format(self.long_name, self.short_name)
		return self.name

	def __str__(self): return '<Route {} [{}]>'.format(self.display_name, self.route_id)


### Trips and stop times

@u.attr_struct(frozen=True)
class Trip:
	trip_id = u.attr_init()
	route_id = u.attr_init()
	service_id = u.attr_init()
	trip_headsign = u.attr_init(None)
	trip_short_name = u.attr_init(None)
	direction_id = u.attr_init(None)
	block_id = u.attr_init(None)
	shape_id = u.attr_init(None)
	wheelchair_accessible = u.attr_init(None)
	bikes_allowed = u.attr_init(None)

@u.attr_struct(frozen=True)
class StopTime:
	trip_id = u.attr_init()
	stop_sequence = u.attr_init()
	stop_id = u.attr_init(None) # can be missing for location_group_id/location_id rows
	arrival_time = u.attr_init(None)
	departure_time = u.attr_init(None)
	location_group_id = u.attr_init(None)
	location_id = u.attr_init(None)
	stop_headsign = u.attr_init(None)
	start_pickup_drop_off_window = u.attr_init(None)
	end_pickup_drop_off_window = u.attr_init(None)
	pickup_type = u.attr_init(None)
	drop_off_type = u.attr_init(None)
	continuous_pickup = u.attr_init(None)
	continuous_drop_off = u.attr_init(None)
	shape_dist_traveled = u.attr_init(None)
	timepoint = u.attr_init(None)
	pickup_booking_rule_id = u.attr_init(None)
	drop_off_booking_rule_id = u.attr_init(None)
