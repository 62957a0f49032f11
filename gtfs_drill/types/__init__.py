from . import feed, schedule
