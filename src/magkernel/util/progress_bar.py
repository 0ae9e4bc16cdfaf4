import progressbar
from datetime import datetime, timedelta

DISPLAY_DELAY = timedelta(seconds=1)


class ProgressBar(object):
    """
    Terminal progress bar which only starts drawing once the task has
    been running for longer than `DISPLAY_DELAY`, so that quick kernel
    computations don't clutter the output.

    """
    def __init__(self, maximum_value):
        self.maximum_value = maximum_value
        self.pb = progressbar.ProgressBar(max_value=maximum_value,
            widgets=[progressbar.ETA(), progressbar.Bar('=', '[', ']'), ' ', progressbar.Percentage()])
        self.display_time = datetime.now() + DISPLAY_DELAY
        self.displayed = False

    def update(self, value):
        if datetime.now() > self.display_time:
            self.pb.update(min(value, self.maximum_value))
            self.displayed = True

    def finish(self):
        if self.displayed:
            self.pb.finish()
