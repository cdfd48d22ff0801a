from rich.console import Console
from rich.table import Table

from cellar.database import PostgresqlDB, db_lifespan
from cellar.database.status import StatusTarget


@db_lifespan
async def cmd_status(db: PostgresqlDB, target: StatusTarget):
    status = await db.status(target)
    print_status(status)


def print_status(status: dict, console: Console = None):
    status = dict(status)
    target = status.pop("target").upper()
    table = Table(title=f"STATUS {target}", title_style="bold", show_header=False, min_width=30)
    table.add_column(style="cyan")
    table.add_column(justify="right")

    for k, v in status.items():
        table.add_row(k, str(v))

    (console or Console()).print(table)
