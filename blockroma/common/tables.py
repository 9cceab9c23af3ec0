import sqlalchemy as sa
import sqlalchemy.types as types
from sqlalchemy.dialects import postgresql


class DecimalString(types.TypeDecorator):
    """
    Binds arbitrary precision integers as decimal strings, the column keeps
    them as NUMERIC without any float on the way.
    """

    impl = postgresql.NUMERIC(100, 0)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None

        if isinstance(value, str) and value.startswith('0x'):
            return str(int(value, 16))

        return str(int(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None

        return int(value)


class DecimalStringArray(types.TypeDecorator):
    impl = postgresql.ARRAY(postgresql.NUMERIC(100, 0))
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None

        return [str(int(item)) for item in value]

    def process_result_value(self, value, dialect):
        if value is None:
            return None

        return [int(item) for item in value]


metadata = sa.MetaData()

blocks_t = sa.Table(
    'blocks',
    metadata,
    sa.Column('hash', sa.LargeBinary, primary_key=True),
    sa.Column('number', sa.BigInteger, nullable=False),
    sa.Column('parent_hash', sa.LargeBinary, nullable=False),
    sa.Column('miner', sa.LargeBinary, nullable=False),
    sa.Column('difficulty', DecimalString),
    sa.Column('total_difficulty', DecimalString),
    sa.Column('gas_limit', DecimalString),
    sa.Column('gas_used', DecimalString),
    sa.Column('base_fee_per_gas', DecimalString),
    sa.Column('size', sa.Integer),
    sa.Column('nonce', sa.LargeBinary),
    sa.Column('timestamp', sa.BigInteger, nullable=False),
    sa.Column('consensus', sa.Boolean, nullable=False, server_default='true'),
    sa.Column('is_empty', sa.Boolean),
    # one canonical block per number
    sa.Index('ix_blocks_number_consensus', 'number', unique=True, postgresql_where=sa.text('consensus')),
)

transactions_t = sa.Table(
    'transactions',
    metadata,
    sa.Column('hash', sa.LargeBinary, primary_key=True),
    sa.Column('block_hash', sa.LargeBinary, nullable=False, index=True),
    sa.Column('block_number', sa.BigInteger, nullable=False, index=True),
    sa.Column('from_address', sa.LargeBinary, nullable=False, index=True),
    sa.Column('to_address', sa.LargeBinary, index=True),
    sa.Column('value', DecimalString),
    sa.Column('gas', DecimalString),
    sa.Column('gas_price', DecimalString),
    sa.Column('gas_used', DecimalString),
    sa.Column('cumulative_gas_used', DecimalString),
    sa.Column('index', sa.Integer),
    sa.Column('nonce', sa.BigInteger),
    sa.Column('input', sa.LargeBinary),
    sa.Column('r', DecimalString),
    sa.Column('s', DecimalString),
    sa.Column('v', DecimalString),
    sa.Column('status', sa.SmallInteger),
    sa.Column('max_fee_per_gas', DecimalString),
    sa.Column('max_priority_fee_per_gas', DecimalString),
    sa.Column('type', sa.SmallInteger),
    sa.Column('timestamp', sa.BigInteger),
)

addresses_t = sa.Table(
    'addresses',
    metadata,
    sa.Column('hash', sa.LargeBinary, primary_key=True),
    sa.Column('fetched_coin_balance', DecimalString),
    sa.Column('fetched_coin_balance_block_number', sa.BigInteger),
)

tokens_t = sa.Table(
    'tokens',
    metadata,
    sa.Column('contract_address', sa.LargeBinary, primary_key=True),
    sa.Column('type', sa.String, nullable=False),
    sa.Column('name', sa.String),
    sa.Column('symbol', sa.String),
    sa.Column('decimals', sa.SmallInteger),
    sa.Column('total_supply', DecimalString),
    sa.Column('skip_metadata', sa.Boolean, nullable=False, server_default='false'),
)

token_transfers_t = sa.Table(
    'token_transfers',
    metadata,
    sa.Column('transaction_hash', sa.LargeBinary, primary_key=True),
    sa.Column('log_index', sa.Integer, primary_key=True),
    sa.Column('block_hash', sa.LargeBinary, nullable=False),
    sa.Column('block_number', sa.BigInteger, nullable=False, index=True),
    sa.Column('from_address', sa.LargeBinary, index=True),
    sa.Column('to_address', sa.LargeBinary, index=True),
    sa.Column('token_contract_address', sa.LargeBinary, nullable=False, index=True),
    sa.Column('type', sa.String, nullable=False),
    sa.Column('amount', DecimalString),
    sa.Column('token_id', DecimalString),
    sa.Column('amounts', DecimalStringArray),
    sa.Column('token_ids', DecimalStringArray),
)

TABLES = (
    blocks_t,
    transactions_t,
    addresses_t,
    tokens_t,
    token_transfers_t,
)
