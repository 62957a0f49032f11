### Dot-separated command paths and their interpretation at navigation tree nodes

# Grammar, with "." separating segments:
#   root node: info | stops.<rest> | routes.<rest> | trips.<rest>
#   collection: list | info | <id>.<command at child node>
# Ids containing dots can't be addressed.

import itertools as it, operator as op, functools as ft
import sys

from . import utils as u, engine


log = u.get_logger('gd.cmd')


class CommandError(Exception):
	'''Base for all command errors, which render as a single
		"msg: cause-msg: cause-of-cause-msg ..." line when nested.'''

	def __init__(self, msg, cause=None):
		super(CommandError, self).__init__(
			msg if cause is None else '{}: {}'.format(msg, cause) )
		self.cause = cause
		if cause is not None: self.__cause__ = cause

	def chain(self):
		'Yield this error and all errors that caused it, outermost first.'
		err = self
		while isinstance(err, BaseException):
			yield err
			err = getattr(err, 'cause', None)

class InvalidCommand(CommandError):
	def __init__(self, command, reason=None):
		msg = 'Invalid command: {}'.format(command)
		if reason: msg += ' ({})'.format(reason)
		super(InvalidCommand, self).__init__(msg)
		self.command = str(command)

class CommandSyntaxError(InvalidCommand): pass

class SubcommandRequired(CommandError):
	def __init__(self, collection):
		super(SubcommandRequired, self).__init__(
			'{} subcommand required'.format(collection.title()) )
		self.collection = collection

class ErrorInterpretingSubcommand(CommandError):
	def __init__(self, collection, cause):
		super(ErrorInterpretingSubcommand, self).__init__(
			'Error interpreting {} subcommand'.format(collection), cause )
		self.collection = collection

class ErrorGettingEntity(CommandError):
	kind = None
	def __init__(self, entity_id, cause):
		super(ErrorGettingEntity, self).__init__('Error getting {}'.format(self.kind), cause)
		self.entity_id = entity_id

class ErrorGettingRoute(ErrorGettingEntity): kind = 'route'
class ErrorGettingStop(ErrorGettingEntity): kind = 'stop'
class ErrorGettingTrip(ErrorGettingEntity): kind = 'trip'

class ErrorExecutingCommand(CommandError):
	kind = None
	def __init__(self, entity_id, cause):
		super(ErrorExecutingCommand, self).__init__(
			'Error executing command for {} {}'.format(self.kind, entity_id), cause )
		self.entity_id = entity_id

class ErrorExecutingCommandForRoute(ErrorExecutingCommand): kind = 'route'
class ErrorExecutingCommandForStop(ErrorExecutingCommand): kind = 'stop'
class ErrorExecutingCommandForTrip(ErrorExecutingCommand): kind = 'trip'


@u.attr_struct(frozen=True)
class CommandPath:
	segments = u.attr_init(tuple, converter=tuple)

	@property
	def head(self): return self.segments[0] if self.segments else None
	@property
	def rest(self): return CommandPath(self.segments[1:])

	def __bool__(self): return bool(self.segments)
	def __len__(self): return len(self.segments)
	def __iter__(self): return iter(self.segments)
	def __str__(self): return '.'.join(self.segments)

def parse_command(line):
	'''Parse command line into CommandPath, raising CommandSyntaxError on empty segments.
		Empty (or whitespace-only) line is parsed into an empty path.'''
	if isinstance(line, CommandPath): return line
	line = line.strip()
	if not line: return CommandPath()
	segments = list(s.strip() for s in line.split('.'))
	if not all(segments): raise CommandSyntaxError(line, 'empty path segment')
	return CommandPath(segments)


class CollectionCommands:

	name = kind = None
	error_getting = error_executing = None

	def __init__(self, node, out=None):
		self.node, self.out = node, out

	@property
	def records(self): return getattr(self.node.schedule, self.name)

	def record_id(self, rec): return getattr(rec, self.records.id_attr)
	def label(self, rec): raise NotImplementedError

	def child(self, path):
		'Return child node for id in path head, raising InvalidCommand if there is no such id.'
		rec_id = path.head
		if rec_id not in self.records: raise InvalidCommand(path)
		try: return self.node.child(self.kind, rec_id)
		except engine.ProjectionError as err: raise self.error_getting(rec_id, err) from err

	def interpret(self, path):
		if path.head == 'list':
			for rec in self.records:
				print('{}: {}'.format(self.record_id(rec), self.label(rec)), file=self.out)
		elif path.head == 'info':
			print('{}: {}'.format(self.name.title(), len(self.records)), file=self.out)
		else:
			child = self.child(path)
			try: interpret(child, path.rest, self.out)
			except CommandError as err: raise self.error_executing(path.head, err) from err

	def navigate(self, path):
		child = self.child(path)
		try: return navigate(child, path.rest)
		except CommandError as err: raise self.error_executing(path.head, err) from err

class RoutesCommands(CollectionCommands):
	name, kind = 'routes', 'route'
	error_getting, error_executing = ErrorGettingRoute, ErrorExecutingCommandForRoute
	def label(self, route): return route.display_name

class StopsCommands(CollectionCommands):
	name, kind = 'stops', 'stop'
	error_getting, error_executing = ErrorGettingStop, ErrorExecutingCommandForStop
	def label(self, stop): return stop.name or 'Unnamed Location'

class TripsCommands(CollectionCommands):
	name, kind = 'trips', 'trip'
	error_getting, error_executing = ErrorGettingTrip, ErrorExecutingCommandForTrip
	def label(self, trip):
		return '{} (route {})'.format( u.get_any( trip,
			'trip_headsign', 'trip_short_name', default='No headsign' ), trip.route_id )

collection_commands = dict(
	(cls.name, cls) for cls in [StopsCommands, RoutesCommands, TripsCommands] )


def node_info(node, out=None):
	if node.is_root: header = 'Feed'
	else:
		header = '{} {}'.format(node.kind.title(), node.node_id)
		if node.node_name: header += ': {}'.format(node.node_name)
	print(header, file=out)
	for k, v in node.schedule.counts().items():
		print('  {}: {:,}'.format(k.replace('_', ' ').capitalize(), v), file=out)

def collection_for(path):
	cmds_cls = collection_commands.get(path.head)
	if not cmds_cls: raise InvalidCommand(path)
	if not path.rest: raise SubcommandRequired(path.head)
	return cmds_cls

def interpret(node, line, out=None):
	'''Run command (str or CommandPath) at specified node, printing results to out (stdout).
		Raises CommandError subclass on any failure, nothing is printed for these here.'''
	path = parse_command(line)
	if out is None: out = sys.stdout
	log.debug('Command at node {!r}: {}', node.path(), path)
	if path.head == 'info': return node_info(node, out)
	cmds_cls = collection_for(path)
	try: cmds_cls(node, out).interpret(path.rest)
	except CommandError as err: raise ErrorInterpretingSubcommand(path.head, err) from err

def navigate(node, line):
	'''Return node reached by following collection.id pairs from specified one.
		Raises same CommandError subclasses as interpret() for same path.'''
	path = parse_command(line)
	if not path: return node
	cmds_cls = collection_for(path)
	try: return cmds_cls(node).navigate(path.rest)
	except CommandError as err: raise ErrorInterpretingSubcommand(path.head, err) from err
