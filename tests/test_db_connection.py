# tests/test_db_connection.py
from sqlalchemy import inspect, text


def test_database_connection(db_engine, db_session):
    """Test that we can connect to the database."""
    result = db_session.execute(text("SELECT 1")).scalar()
    assert result == 1


def test_offer_tables_created(db_engine):
    """Every table the offer services write to exists."""
    tables = set(inspect(db_engine).get_table_names())

    assert {
        "businesses",
        "users",
        "products",
        "product_parameters",
        "warehouses",
        "offers",
        "offer_prices",
        "incoterms",
        "offer_countries",
        "offer_views",
        "offer_favorites",
    } <= tables


def test_country_exclusion_flag_column(db_engine):
    """delivery_allowed is stored in the legacy 'value' column"""
    columns = {column["name"] for column in inspect(db_engine).get_columns("offer_countries")}

    assert "value" in columns
    assert "delivery_allowed" not in columns
