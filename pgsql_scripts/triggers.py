# pgsql_scripts/triggers.py
from alembic_utils.pg_trigger import PGTrigger
from . import functions as pg_func

db_schema = pg_func.recompute_inventory_balance_func.schema
db_func = pg_func.recompute_inventory_balance_func.signature
trg_after_insert_activities = PGTrigger(
    schema="inv",
    signature="after_insert_activities",
    on_entity="inv.activities",
    is_constraint=False,
    definition=f"""
    AFTER INSERT
    ON inv.activities
    FOR EACH ROW
    EXECUTE FUNCTION {db_schema}.{db_func}
    """
)
