# pgsql_scripts/functions.py
from alembic_utils.pg_function import PGFunction

from app.domains.inv.ledger import BALANCE_EFFECTS


def _signed_qty_sql(position: int) -> str:
    """
    CASE expression giving the signed qty of an activity row for one balance
    column (0 = on_hand, 1 = allocated), rendered from BALANCE_EFFECTS.
    """
    branches = []
    for event_type, signs in sorted(BALANCE_EFFECTS.items()):
        sign = signs[position]
        if sign == 1:
            branches.append(f"WHEN '{event_type}' THEN a.qty")
        elif sign == -1:
            branches.append(f"WHEN '{event_type}' THEN -a.qty")
    return "CASE a.event_type " + " ".join(branches) + " ELSE 0 END"


# Same full replay as app.domains.inv.ledger.recompute_balance.
recompute_inventory_balance_func = PGFunction(
    schema="inv",
    signature="recompute_inventory_balance()",
    definition=f"""
    RETURNS TRIGGER AS $$
    DECLARE
        v_on_hand BIGINT;
        v_allocated BIGINT;
    BEGIN
        IF NEW.part_id IS NULL THEN
            RETURN NEW;
        END IF;

        INSERT INTO inv.inventory_balances (part_id, on_hand, allocated, available, updated_at)
        VALUES (NEW.part_id, 0, 0, 0, now())
        ON CONFLICT (part_id) DO NOTHING;

        -- Lock the balance row before summing the ledger.
        PERFORM 1 FROM inv.inventory_balances
        WHERE part_id = NEW.part_id
        FOR UPDATE;

        SELECT
            COALESCE(SUM({_signed_qty_sql(0)}), 0),
            COALESCE(SUM({_signed_qty_sql(1)}), 0)
        INTO v_on_hand, v_allocated
        FROM inv.activities AS a
        WHERE a.part_id = NEW.part_id;

        UPDATE inv.inventory_balances
        SET on_hand = v_on_hand,
            allocated = v_allocated,
            available = v_on_hand - v_allocated,
            updated_at = now()
        WHERE part_id = NEW.part_id;

        RETURN NEW;
    END;
    $$ LANGUAGE plpgsql;
    """
)
