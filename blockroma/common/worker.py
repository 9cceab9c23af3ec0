import asyncio

import mode


class Worker(mode.Worker):
    """Patched `Worker` with disabled `_setup_logging` and graceful shutdown.
    Default `mode.Worker` overrides logging configuration set up by
    `blockroma.common.logs.configure`.
    """

    def _setup_logging(self) -> None:
        pass

    def schedule_shutdown(self):
        asyncio.ensure_future(self.stop())


def shutdown_root_worker(fut: asyncio.Future, service: mode.Service) -> None:
    """Stops the whole `mode` services tree once the service's main task is done.

    A completed or cancelled main task means the indexer has nothing to do
    anymore, an exception crashes the tree so the process exits non zero.
    Without it the service stays up and running but doesn't import anything.
    """
    try:
        fut.result()
        service._log_mundane('Main future has completed, stopping the service tree...')
    except asyncio.CancelledError:
        service._log_mundane('Main future has been cancelled, stopping the service tree...')
    except Exception as exc:
        service._log_mundane('Main future raised an Exception, crashing the service tree...')
        asyncio.ensure_future(service.crash(exc))
        return

    if hasattr(service.beacon.root.data, '_starting_fut'):
        service.beacon.root.data._starting_fut.cancel()
