from sqlalchemy.dialects import postgresql

from blockroma.common.tables import DecimalString, DecimalStringArray

dialect = postgresql.dialect()


def test_decimal_string_binds_big_integers_without_floats():
    value = 2 ** 256 - 1

    assert DecimalString().process_bind_param(value, dialect) == str(value)
    assert DecimalString().process_result_value(str(value), dialect) == value


def test_decimal_string_accepts_hex_and_none():
    assert DecimalString().process_bind_param('0x10', dialect) == '16'
    assert DecimalString().process_bind_param(None, dialect) is None


def test_decimal_string_array():
    column_type = DecimalStringArray()

    assert column_type.process_bind_param([1, 2 ** 100], dialect) == ['1', str(2 ** 100)]
    assert column_type.process_bind_param(None, dialect) is None
