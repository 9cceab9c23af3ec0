from typing import Any, Awaitable, Callable, Dict, List

RawBlock = Dict[str, Any]
RawTransaction = Dict[str, Any]
RawReceipt = Dict[str, Any]

Log = Dict[str, Any]
Logs = List[Log]

BlockNumber = int

NewBlockCallback = Callable[[BlockNumber], Awaitable[Any]]
