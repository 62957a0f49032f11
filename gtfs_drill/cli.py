import itertools as it, operator as op, functools as ft
import sys

import gtfs_drill as gd


log = gd.u.get_logger('gd.cli')


class ConsoleEvents(gd.gtfs.LoaderEvents):
	'Reports feed download progress on a single updated stderr line.'

	def __init__(self, out=None):
		self.out, self.progress = out or sys.stderr, False

	def on_download(self, bytes_done, bytes_total):
		total = '' if not bytes_total else ' / {:,.1f} MiB'.format(bytes_total / 2**20)
		print( '\rDownloading feed: {:,.1f} MiB{}'.format(bytes_done / 2**20, total),
			end='', file=self.out, flush=True )
		self.progress = True

	def on_table_opened(self, table):
		if self.progress:
			print(file=self.out, flush=True)
			self.progress = False
		log.debug('Loading table: {}', table)

	def on_table_loaded(self, table, count):
		log.debug('Loaded {:,} record(s) from table: {}', count, table)


repl_help = '''
Commands are dot-separated paths, interpreted at the current node:
  info                      - current node summary
  stops.list / stops.info   - list or count stops (same for routes and trips)
  stops.<id>.<command>      - run command at node for stop (or route/trip) with that id
Shell commands:
  cd <collection.id...>     - enter node, e.g. "cd stops.place-pktrm.routes.Red"
  up, ..                    - go to parent node
  top                       - go to the root (full feed) node
  pwd                       - print current node path
  help                      - this text
  exit, quit                - leave the shell (Ctrl-D works too)'''.strip()

class Repl:

	def __init__(self, node, out=None, err_out=None):
		self.node, self.out, self.err_out = node, out or sys.stdout, err_out or sys.stderr
		self.failed = 0

	@property
	def prompt(self): return '{}> '.format(self.node.path() or 'gtfs')

	def input_lines(self):
		while True:
			try: yield input(self.prompt)
			except KeyboardInterrupt: print(file=self.out)
			except EOFError:
				print(file=self.out)
				break

	def error(self, err):
		self.failed += 1
		print('Error: {}'.format(err), file=self.err_out, flush=True)

	def handle(self, line):
		'Process one input line, returning False when shell should be exited.'
		words = line.strip().split(None, 1)
		if not words: return True
		cmd, arg = words[0], (words[1].strip() if len(words) > 1 else '')
		if cmd in ['exit', 'quit'] and not arg: return False
		elif cmd == 'help' and not arg: print(repl_help, file=self.out)
		elif cmd in ['up', '..'] and not arg:
			if self.node.parent is not None: self.node = self.node.parent
		elif cmd == 'top' and not arg: self.node = self.node.top()
		elif cmd == 'pwd' and not arg: print(self.node.path() or '(root)', file=self.out)
		elif cmd == 'cd':
			try: self.node = gd.commands.navigate(self.node.top() if not arg else self.node, arg)
			except gd.commands.CommandError as err: self.error(err)
		else:
			try: gd.commands.interpret(self.node, line, self.out)
			except gd.commands.CommandError as err: self.error(err)
		return True

	def run(self, lines=None):
		if lines is None: lines = self.input_lines()
		for line in lines:
			if not self.handle(line): break
		return self.node


def conf_value_type_ok(default, v):
	if isinstance(default, bool): return isinstance(v, bool)
	if isinstance(default, int): return isinstance(v, int) and not isinstance(v, bool) and v > 0
	return isinstance(v, type(default))

def main(args=None):
	conf = gd.gtfs.GTFSConf()

	import argparse
	parser = argparse.ArgumentParser(
		description='Load GTFS feed and interactively drill down'
			' into its stops, routes and trips, with consistent subsets of data at each step.')
	parser.add_argument('source', nargs='?',
		help='GTFS feed to load - http(s) URL, path to zip file or an extracted feed directory.'
			' Default is to download it from feed_url config value (default: {}).'.format(conf.feed_url))

	group = parser.add_argument_group('Feed loading options')
	group.add_argument('--cache-schedule', metavar='path',
		help='Pickle file to load parsed schedule from (if exists)'
			' or store it to (if missing) after loading the feed.'
			' Feed source is not used at all if this file exists.')
	group.add_argument('--conf', metavar='yaml-data',
		help='Override values for GTFSConf as a YAML mapping.'
			' Example: {fetch_timeout: 300, sort_stop_times: true}')
	group.add_argument('--conf-file', metavar='path',
		help='Same as --conf, but with YAML mapping loaded from specified file.'
			' Values from --conf are applied on top of ones from this file.')

	group = parser.add_argument_group('Commands')
	group.add_argument('-c', '--command', metavar='command', action='append',
		help='Run specified command at the root node and exit instead of starting interactive shell.'
			' Can be specified multiple times to run several commands, e.g.: -c stops.list -c info')

	group = parser.add_argument_group('Misc/debug options')
	group.add_argument('-q', '--quiet', action='store_true',
		help='Do not print feed download progress to stderr.')
	group.add_argument('--debug', action='store_true', help='Verbose operation mode.')

	opts = parser.parse_args(sys.argv[1:] if args is None else args)

	gd.u.logging.basicConfig(
		format='%(asctime)s :: %(name)s %(levelname)s :: %(message)s',
		datefmt='%Y-%m-%d %H:%M:%S',
		level=gd.u.logging.DEBUG if opts.debug else gd.u.logging.WARNING )

	conf_overrides = list()
	if opts.conf_file:
		import yaml
		with open(opts.conf_file) as src: conf_overrides.append(yaml.safe_load(src))
	if opts.conf:
		import yaml
		conf_overrides.append(yaml.safe_load(opts.conf))
	conf_defaults = gd.gtfs.GTFSConf()
	for conf_update in conf_overrides:
		if not conf_update: continue
		if not isinstance(conf_update, dict):
			parser.error('Config overrides must be a YAML mapping, not: {!r}'.format(conf_update))
		for k, v in conf_update.items():
			if not hasattr(conf, k):
				parser.error('Unrecognized conf option: {!r} (value: {!r})'.format(k, v))
			if not conf_value_type_ok(getattr(conf_defaults, k), v):
				parser.error('Invalid value for conf option {!r}: {!r} (expected {})'.format(
					k, v, type(getattr(conf_defaults, k)).__name__ ))
			setattr(conf, k, v)

	events = None if opts.quiet else ConsoleEvents()
	try:
		node = gd.init_feed_node( opts.source, opts.cache_schedule,
			conf=conf, events=events, timer_func=gd.calc_timer )
	except gd.gtfs.FeedLoadError as err:
		print('Error: {}'.format(err), file=sys.stderr, flush=True)
		return 1

	repl = Repl(node)
	if opts.command:
		for line in opts.command:
			try: gd.commands.interpret(node, line)
			except gd.commands.CommandError as err: repl.error(err)
		return 1 if repl.failed else 0

	repl.run()

if __name__ == '__main__': sys.exit(main())
