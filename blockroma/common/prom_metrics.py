from prometheus_client import Counter, Gauge, Histogram

METRIC_INDEXER_LOOP_TASKS_TOTAL = Gauge(
    'blockroma_indexer_loop_tasks_total',
    'Total amount of tasks in the event loop.',
)

# Chain node.

METRIC_NODE_REQUEST_RETRIES_TOTAL = Counter(
    'blockroma_node_request_retries_total',
    'Total amount of retried node requests.',
)
METRIC_NODE_BLOCK_FETCH_FAILURES_TOTAL = Counter(
    'blockroma_node_block_fetch_failures_total',
    'Total amount of blocks skipped because the node has not returned them.',
)

# Importer.

METRIC_IMPORTER_RANGES_TOTAL = Counter(
    'blockroma_importer_ranges_total',
    'Total amount of processed block ranges.',
    ['status'],
)
METRIC_IMPORTER_BLOCKS_TOTAL = Counter(
    'blockroma_importer_blocks_total',
    'Total amount of imported blocks.',
)
METRIC_IMPORTER_RANGE_DURATION = Histogram(
    'blockroma_importer_range_duration_seconds',
    'Time spent to import a block range in seconds.',
)
METRIC_IMPORTER_LAST_BLOCK = Gauge(
    'blockroma_importer_last_block',
    'Highest block number imported by the process.',
)

# Realtime.

METRIC_REALTIME_QUEUE_SIZE = Gauge(
    'blockroma_realtime_queue_size',
    'Amount of block notifications waiting for import.',
)
