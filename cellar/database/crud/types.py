from typing import TypedDict, Union, NotRequired, Any, Sequence

Where = dict[str, Any]
"""Filter tree: column names, relationship names and ``AND``/``OR``/``NOT``."""

OrderBy = Union[dict[str, Any], Sequence[dict[str, Any]]]
AggregateFields = Union[bool, Sequence[str], dict[str, bool]]


class LoadingNode(TypedDict):
    where: NotRequired[Where]
    include: NotRequired["Include"]
    select: NotRequired["Select"]


LoadingConfig = Union[bool, LoadingNode]
Include = dict[str, LoadingConfig]
Select = dict[str, LoadingConfig]
