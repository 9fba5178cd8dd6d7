from sqlalchemy import text
from sqlalchemy.engine import Connection


def normalize_promotions(connection: Connection) -> dict:
    """
    One-off cleanup for rows written before codes, types and roles were
    normalized on input. Codes and types are trimmed and upper-cased, roles
    are upper-cased and empty roles become USER.

    Returns the number of rows touched per table.
    """
    # Check current values
    result = connection.execute(text("SELECT DISTINCT type FROM promotions"))
    print("Current promotion types:", [row[0] for row in result])
    result = connection.execute(text("SELECT DISTINCT role FROM users"))
    print("Current roles:", [row[0] for row in result])

    # Codes are unique: refuse to merge two codes that only differ by case
    clashes = connection.execute(text(
        "SELECT UPPER(TRIM(code)) AS c FROM promotions "
        "GROUP BY UPPER(TRIM(code)) HAVING COUNT(*) > 1"
    )).fetchall()
    if clashes:
        raise RuntimeError(
            "Promotion codes collide after normalization: "
            + ", ".join(row[0] for row in clashes)
        )

    promotions = connection.execute(text(
        "UPDATE promotions SET code = UPPER(TRIM(code)), type = UPPER(TRIM(type)) "
        "WHERE code <> UPPER(TRIM(code)) OR type <> UPPER(TRIM(type))"
    )).rowcount
    users = connection.execute(text(
        "UPDATE users SET role = CASE WHEN role IS NULL OR TRIM(role) = '' "
        "THEN 'USER' ELSE UPPER(TRIM(role)) END "
        "WHERE role IS NULL OR role <> UPPER(TRIM(role)) OR TRIM(role) = ''"
    )).rowcount

    connection.commit()
    print(f"Updated {promotions} promotion(s) and {users} user(s).")

    # Verify
    result = connection.execute(text("SELECT DISTINCT type FROM promotions"))
    print("New promotion types:", [row[0] for row in result])
    result = connection.execute(text("SELECT DISTINCT role FROM users"))
    print("New roles:", [row[0] for row in result])

    return {"promotions": promotions, "users": users}


if __name__ == "__main__":
    from boxoffice.db.session import engine

    with engine.connect() as connection:
        normalize_promotions(connection)
