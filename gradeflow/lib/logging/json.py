import typing as t

from gradeflow.lib.json import JSONEncoder as BaseJSONEncoder
from gradeflow.lib.json import JSONValue


class JSONEncoder(BaseJSONEncoder):
    """Never fails: values without an encoder are logged by their repr"""

    def default(self, o: t.Any) -> JSONValue:
        try:
            return super().default(o)
        except TypeError:
            return repr(o)
