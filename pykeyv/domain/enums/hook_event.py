"""Hook extension points fired by the orchestrator.

Each hook receives a mutable payload dict. Handlers may mutate it in place
to redirect behavior, e.g. rewrite ``payload["key"]`` in PRE_SET.
"""

from enum import StrEnum


class KeyvHook(StrEnum):
    """Named extension points.

    Values are the wire names used by ``HooksManager.add_handler``.
    """

    PRE_SET = "preSet"
    POST_SET = "postSet"
    PRE_GET = "preGet"
    POST_GET = "postGet"
    PRE_GET_MANY = "preGetMany"
    POST_GET_MANY = "postGetMany"
    PRE_DELETE = "preDelete"
    POST_DELETE = "postDelete"
