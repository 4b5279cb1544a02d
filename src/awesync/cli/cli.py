"""CLI entrypoint: Typer app definition and command registration"""

import typer

from awesync.cli.commands import (
    add_list_cmd, cancel_cmd, export_cmd, history_cmd, import_cmd, init_cmd,
    lint_cmd, lists_cmd, parse_cmd, preview_cmd, search_cmd, status_cmd,
)


app = typer.Typer(name="awesync", no_args_is_help=True, help="Sync awesome-list markdown with a resource catalog")

app.command(name="init")(init_cmd)
app.command(name="add-list")(add_list_cmd)
app.command(name="lists")(lists_cmd)
app.command(name="import")(import_cmd)
app.command(name="export")(export_cmd)
app.command(name="preview")(preview_cmd)
app.command(name="status")(status_cmd)
app.command(name="cancel")(cancel_cmd)
app.command(name="history")(history_cmd)
app.command(name="parse")(parse_cmd)
app.command(name="lint")(lint_cmd)
app.command(name="search")(search_cmd)
