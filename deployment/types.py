import click


class Seconds(click.ParamType):
    """A duration in seconds, no shorter than `minimum`."""

    name = "seconds"

    def __init__(self, minimum: float = 1):
        self.minimum = minimum

    def convert(self, value, param, ctx):
        if isinstance(value, (int, float)):
            seconds = value
        else:
            try:
                seconds = float(value)
            except ValueError:
                self.fail(f"{value!r} is not a number of seconds", param, ctx)
        if not seconds >= self.minimum:  # also rejects nan
            self.fail(f"{value} is shorter than the minimum of {self.minimum} seconds", param, ctx)
        return seconds
