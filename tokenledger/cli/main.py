"""
tokenledger — command-line interface for a file-backed token ledger.

State lives in a JSON snapshot (`--state`, default ./tokenledger.json); every
delivered event is appended to a JSONL log next to it (or `--events`, or
$TOKENLEDGER_EVENT_LOG). Each command loads the snapshot, runs one host call,
and writes the snapshot back only if the call succeeded.

Global options:
  --state PATH      Ledger state file
  --events PATH     Event log (JSONL)
  --json            Output JSON instead of human-readable text
  --verbose / -v    Debug logging

Examples:
  tokenledger deploy 0xaa…aa 10000
  tokenledger transfer 0xaa…aa 0xbb…bb 1000
  tokenledger approve 0xaa…aa 0xcc…cc 500
  tokenledger transfer-from 0xcc…cc 0xaa…aa 0xdd…dd 500
  tokenledger balance 0xdd…dd
  tokenledger events --to 0xdd…dd

Exit codes: 0 ok, 1 reverted / rejected input, 2 missing or unreadable state.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from .. import metrics
from ..config import load_config
from ..errors import InvariantViolation, LedgerError
from ..runtime.host import Host
from ..runtime.ledger import Ledger
from ..runtime.sinks import JsonlEventSink
from ..types.account import to_account, to_hex
from ..types.result import CallResult

log = logging.getLogger(__name__)

app = typer.Typer(
    name="tokenledger",
    help="Fungible token ledger with a JSON state file and a JSONL event log",
    no_args_is_help=True,
    add_completion=False,
)


class GlobalContext:
    def __init__(self):
        self.state_path: Path = Path("tokenledger.json")
        self.events_path: Optional[Path] = None
        self.json_output: bool = False
        self.verbose: bool = False

    def resolve_events_path(self) -> Path:
        if self.events_path is not None:
            return self.events_path
        cfg_path = load_config().event_log_path
        if cfg_path is not None:
            return cfg_path
        return self.state_path.with_suffix(".events.jsonl")


_ctx = GlobalContext()


@app.callback()
def main_callback(
    state: Path = typer.Option(
        Path("tokenledger.json"),
        "--state",
        help="Ledger state file (JSON snapshot)",
        envvar="TOKENLEDGER_STATE",
    ),
    events: Optional[Path] = typer.Option(
        None,
        "--events",
        help="Event log file (JSONL); defaults to <state>.events.jsonl",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output JSON instead of human-readable text",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Increase verbosity",
    ),
) -> None:
    """
    tokenledger — deploy a token, move balances, manage allowances, read events.
    """
    _ctx.state_path = state
    _ctx.events_path = events
    _ctx.json_output = json_output
    _ctx.verbose = verbose

    cfg = load_config()
    if not logging.getLogger().handlers:
        level = logging.DEBUG if verbose else getattr(logging, cfg.log_level, logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def _pretty(obj: Any) -> str:
    return json.dumps(obj, indent=2, ensure_ascii=False)


def _fail(message: str, code: int, data: Optional[Dict[str, Any]] = None) -> None:
    if _ctx.json_output:
        payload: Dict[str, Any] = {"error": message}
        if data:
            payload["data"] = data
        typer.echo(_pretty(payload))
    else:
        typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code)


def _load_host() -> Host:
    path = _ctx.state_path
    if not path.exists():
        _fail(f"no ledger state at {path}; run 'deploy' first", 2)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        _fail(f"cannot read state file {path}: {e}", 2)
    sink = JsonlEventSink(_ctx.resolve_events_path())
    try:
        ledger = Ledger.from_snapshot(data, sink=sink)
    except (LedgerError, InvariantViolation) as e:
        sink.close()
        _fail(f"corrupt state file {path}: {e}", 2)
    return Host(ledger)


def _save(host: Host) -> None:
    path = _ctx.state_path
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(_pretty(host.ledger.snapshot()) + "\n", encoding="utf-8")
    os.replace(tmp, path)


def _run(caller: str, method: str, *args: Any) -> None:
    host = _load_host()
    try:
        res: CallResult = host.call(caller, method, *args)
        if res.is_success:
            host.sink.flush()
            _save(host)
    finally:
        host.sink.close()

    if _ctx.json_output:
        typer.echo(_pretty(res.to_dict()))
    elif res.is_success:
        typer.echo(f"✓ {res.method}")
        for ev in res.events:
            d = ev.to_dict()
            typer.echo(f"  {d['event']} from={d['from']} to={d['to']} value={d['value']}")
    else:
        err = res.error
        typer.echo(f"✗ {res.method} reverted: {err.code}: {err.message}", err=True)
    if not res.is_success:
        raise typer.Exit(1)


def _query(method: str, *args: Any) -> int:
    host = _load_host()
    try:
        return host.query(method, *args)
    except LedgerError as e:
        _fail(e.message, 1, e.to_dict())
    finally:
        host.sink.close()


# ---------------------------------------------------------------------------
# mutating commands
# ---------------------------------------------------------------------------


@app.command()
def deploy(
    caller: str = typer.Argument(..., help="Deployer account (hex); receives the whole supply"),
    supply: int = typer.Argument(..., help="Total supply (integer base units)"),
    force: bool = typer.Option(False, "--force", help="Overwrite existing state and event log"),
) -> None:
    """Create a new ledger, crediting SUPPLY to CALLER."""
    path = _ctx.state_path
    events_path = _ctx.resolve_events_path()
    if path.exists() and not force:
        _fail(f"state file {path} already exists (use --force to overwrite)", 1)

    # Deploy into a scratch log; the old state and log are replaced only on success.
    tmp_events = events_path.with_name(events_path.name + ".tmp")
    if tmp_events.exists():
        tmp_events.unlink()
    sink = JsonlEventSink(tmp_events)
    try:
        host = Host.deploy(caller, supply, sink=sink)
        sink.flush()
    except LedgerError as e:
        sink.close()
        tmp_events.unlink()
        _fail(e.message, 1, e.to_dict())
    sink.close()
    os.replace(tmp_events, events_path)
    _save(host)

    supply_now = host.ledger.total_supply()
    if _ctx.json_output:
        typer.echo(_pretty({
            "method": "deploy",
            "status": "success",
            "total_supply": supply_now,
            "events": [e.to_dict() for e in host.ledger.events],
        }))
    else:
        typer.echo(f"✓ deployed: supply={supply_now} state={path}")


@app.command()
def transfer(
    caller: str = typer.Argument(..., help="Sender account (hex)"),
    to: str = typer.Argument(..., help="Recipient account (hex)"),
    value: int = typer.Argument(..., help="Amount"),
) -> None:
    """Move VALUE from CALLER to TO."""
    _run(caller, "transfer", to, value)


@app.command("transfer-from")
def transfer_from(
    caller: str = typer.Argument(..., help="Spender account (hex)"),
    from_: str = typer.Argument(..., metavar="FROM", help="Owner account (hex)"),
    to: str = typer.Argument(..., help="Recipient account (hex)"),
    value: int = typer.Argument(..., help="Amount"),
) -> None:
    """Spend CALLER's allowance over FROM to move VALUE to TO."""
    _run(caller, "transfer_from", from_, to, value)


@app.command()
def approve(
    caller: str = typer.Argument(..., help="Owner account (hex)"),
    spender: str = typer.Argument(..., help="Spender account (hex)"),
    value: int = typer.Argument(..., help="New allowance (replaces the old one)"),
) -> None:
    """Set SPENDER's allowance over CALLER's balance to VALUE."""
    _run(caller, "approve", spender, value)


# ---------------------------------------------------------------------------
# read-only commands
# ---------------------------------------------------------------------------


@app.command()
def balance(account: str = typer.Argument(..., help="Account (hex)")) -> None:
    """Print ACCOUNT's balance."""
    bal = _query("balance_of", account)
    if _ctx.json_output:
        typer.echo(_pretty({"account": account, "balance": bal}))
    else:
        typer.echo(str(bal))


@app.command()
def allowance(
    owner: str = typer.Argument(..., help="Owner account (hex)"),
    spender: str = typer.Argument(..., help="Spender account (hex)"),
) -> None:
    """Print how much SPENDER may still move out of OWNER's balance."""
    amt = _query("allowance", owner, spender)
    if _ctx.json_output:
        typer.echo(_pretty({"owner": owner, "spender": spender, "allowance": amt}))
    else:
        typer.echo(str(amt))


@app.command()
def supply() -> None:
    """Print the total supply."""
    total = _query("total_supply")
    if _ctx.json_output:
        typer.echo(_pretty({"total_supply": total}))
    else:
        typer.echo(str(total))


@app.command()
def holders() -> None:
    """List accounts with a non-zero balance."""
    host = _load_host()
    try:
        rows = host.ledger.holders()
    finally:
        host.sink.close()
    if _ctx.json_output:
        typer.echo(_pretty([{"account": to_hex(a), "balance": b} for a, b in rows]))
        return
    for acct, bal in rows:
        typer.echo(f"{to_hex(acct)}  {bal}")


@app.command()
def events(
    name: Optional[str] = typer.Option(None, "--name", help="Event name (Transfer, Approve)"),
    from_: Optional[str] = typer.Option(None, "--from", help="Filter on the 'from' field"),
    to: Optional[str] = typer.Option(None, "--to", help="Filter on the 'to' field"),
    mint: bool = typer.Option(False, "--mint", help="Only the construction-time credit (from = none)"),
    limit: Optional[int] = typer.Option(None, "--limit", min=1, help="Maximum number of records"),
) -> None:
    """Read the event log, optionally filtered by name and fields."""
    where: Dict[str, Any] = {}
    try:
        if from_ is not None:
            where["from"] = to_account(from_, arg="from")
        if to is not None:
            where["to"] = to_account(to, arg="to")
    except LedgerError as e:
        _fail(e.message, 1, e.to_dict())
    if mint:
        where["from"] = None

    path = _ctx.resolve_events_path()
    if not path.exists():
        _fail(f"no event log at {path}", 2)
    sink = JsonlEventSink(path)
    try:
        records = list(sink.get_logs(name=name, where=where or None, limit=limit))
    finally:
        sink.close()

    if _ctx.json_output:
        typer.echo(_pretty([r.to_dict() for r in records]))
        return
    for r in records:
        d = r.event.to_dict()
        typer.echo(f"[{r.seq}:{r.log_index}] {d['event']} from={d['from']} to={d['to']} value={d['value']}")


@app.command("metrics")
def metrics_cmd() -> None:
    """
    Print Prometheus metrics (exposition format) for this invocation only.

    Counters live in process memory and every CLI command is a new process, so
    outside an embedding program the values read zero. Long-running hosts
    should serve `tokenledger.metrics.generate_latest_text()` themselves.
    """
    typer.echo(metrics.generate_latest_text().decode("utf-8"), nl=False)


def main() -> None:
    """Entry point for the tokenledger CLI."""
    app()


if __name__ == "__main__":
    main()
