#!/usr/bin/env python3
"""
Budget Manager CLI.

Primary entry point for all application operations.
Use --service to select what to run, --action to control lifecycle.

Usage:
    python cli.py --help
    python cli.py --service server --verbose
    python cli.py --service server --action stop
    python cli.py --service telegram-setup --ngrok
    python cli.py --service budget --token <jwt> --income 4200
    python cli.py --service health --debug
"""

import asyncio
import os
import signal
import subprocess
import sys
import time
from pathlib import Path

import click
import structlog

PROJECT_ROOT = Path(__file__).parent

from budget_manager.backend.core.logging import get_logger, setup_logging

LONG_RUNNING_SERVICES = {"server", "telegram-poll"}


def validate_project_root() -> Path:
    """Validate that we're running from the project root."""
    if not (PROJECT_ROOT / ".project_root").exists():
        click.echo(
            click.style("Error: .project_root not found. Run from project root.", fg="red"),
            err=True,
        )
        sys.exit(1)
    return PROJECT_ROOT


def _find_process_on_port(port: int) -> list[int]:
    """Find PIDs listening on a port."""
    result = subprocess.run(
        ["lsof", "-ti", f":{port}"],
        capture_output=True, text=True,
    )
    pids = result.stdout.strip().split("\n")
    return [int(p) for p in pids if p.strip()]


def _service_stop(logger, service: str, port: int) -> None:
    """Stop a running service by finding its process on the port."""
    pids = _find_process_on_port(port)
    if not pids:
        click.echo(f"No {service} running on port {port}.")
        return

    for pid in pids:
        os.kill(pid, signal.SIGINT)
        logger.info("Sent SIGINT", extra={"service": service, "pid": pid, "port": port})

    click.echo(f"{service.title()} on port {port} stopped (PID: {', '.join(str(p) for p in pids)}).")


def _service_status(logger, service: str, port: int) -> None:
    """Check if a service is running on a port."""
    pids = _find_process_on_port(port)
    if pids:
        click.echo(f"{service.title()} is running on port {port} (PID: {', '.join(str(p) for p in pids)}).")
    else:
        click.echo(f"{service.title()} is not running on port {port}.")


def _get_service_port(port: int | None) -> int:
    """Get the port from argument or config."""
    if port is not None:
        return port
    from budget_manager.backend.core.config import get_app_config
    return get_app_config().application.server.port


def _fail(message: str) -> None:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(1)


@click.command()
@click.option(
    "--service", "-s",
    type=click.Choice([
        "server", "telegram-setup", "telegram-poll", "budget",
        "health", "config", "test", "info",
    ]),
    default="info",
    help="Service or command to run.",
)
@click.option(
    "--action", "-a",
    type=click.Choice(["start", "stop", "restart", "status"]),
    default="start",
    help="Lifecycle action for long-running services (server, telegram-poll).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output (INFO level logging).")
@click.option("--debug", "-d", is_flag=True, help="Enable debug output (DEBUG level logging).")
@click.option("--host", default=None, help="Server host.")
@click.option("--port", default=None, type=int, help="Server port.")
@click.option("--reload", is_flag=True, help="Enable auto-reload (server only).")
@click.option("--ngrok", "use_ngrok", is_flag=True, help="Expose the server through an ngrok tunnel (telegram-setup).")
@click.option("--webhook-url", default=None, help="Public https base URL for the webhook (telegram-setup).")
@click.option("--token", default=None, envvar="BUDGET_MANAGER_TOKEN", help="Session token (budget).")
@click.option("--year", default=None, type=int, help="Budget year (budget). Defaults to the current year.")
@click.option("--month", default=None, type=click.IntRange(1, 12), help="Budget month (budget). Defaults to the current month.")
@click.option("--income", default=None, type=float, help="Income to save for the month (budget).")
@click.option("--send-telegram", is_flag=True, help="Send the budget summary to the linked Telegram chat (budget).")
@click.option(
    "--test-type",
    type=click.Choice(["all", "unit", "integration"]),
    default="all",
    help="Test type to run.",
)
@click.option("--coverage", is_flag=True, help="Run tests with coverage.")
def main(
    service: str,
    action: str,
    verbose: bool,
    debug: bool,
    host: str | None,
    port: int | None,
    reload: bool,
    use_ngrok: bool,
    webhook_url: str | None,
    token: str | None,
    year: int | None,
    month: int | None,
    income: float | None,
    send_telegram: bool,
    test_type: str,
    coverage: bool,
) -> None:
    """
    Budget Manager CLI.

    Use --service to select what to run. For long-running services
    (server, telegram-poll), use --action to control lifecycle
    (start/stop/restart/status).

    \b
    Examples:
        python cli.py --service server --reload --verbose
        python cli.py --service server --action status
        python cli.py --service telegram-setup --webhook-url https://budget.example.com
        python cli.py --service telegram-setup --ngrok
        python cli.py --service telegram-poll --verbose
        python cli.py --service budget --token <jwt> --year 2025 --month 5 --income 4200
        python cli.py --service budget --token <jwt> --send-telegram
        python cli.py --service health --debug
        python cli.py --service config
        python cli.py --service test --test-type unit
    """
    validate_project_root()

    if debug:
        log_level = "DEBUG"
    elif verbose:
        log_level = "INFO"
    else:
        log_level = "WARNING"

    setup_logging(level=log_level, format_type="console")

    structlog.contextvars.bind_contextvars(source="cli")

    logger = get_logger(__name__)

    logger.debug("CLI invoked", extra={"service": service, "action": action, "log_level": log_level})

    if service in LONG_RUNNING_SERVICES and action != "start":
        service_port = _get_service_port(port)

        if action == "stop":
            _service_stop(logger, service, service_port)
            return
        elif action == "status":
            _service_status(logger, service, service_port)
            return
        elif action == "restart":
            _service_stop(logger, service, service_port)
            time.sleep(2)

    if service == "server":
        run_server(logger, host, port, reload)
    elif service == "telegram-setup":
        run_telegram_setup(logger, use_ngrok, webhook_url, port)
    elif service == "telegram-poll":
        run_telegram_poll(logger)
    elif service == "budget":
        run_budget(logger, token, year, month, income, send_telegram)
    elif service == "health":
        check_health(logger)
    elif service == "config":
        show_config(logger)
    elif service == "test":
        run_tests(logger, test_type, coverage)
    elif service == "info":
        show_info(logger)


def run_server(logger, host: str | None, port: int | None, reload: bool) -> None:
    """Start the FastAPI development server."""
    from budget_manager.backend.core.config import get_app_config

    try:
        server_config = get_app_config().application.server
    except Exception as e:
        logger.error("Failed to load configuration.", extra={"error": str(e)})
        _fail("Could not load config/settings/application.yaml.")

    server_host = host or server_config.host
    server_port = port or server_config.port

    logger.info("Starting server", extra={"host": server_host, "port": server_port, "reload": reload})

    cmd = [
        sys.executable, "-m", "uvicorn",
        "budget_manager.backend.main:app",
        "--host", server_host,
        "--port", str(server_port),
    ]

    if reload:
        cmd.append("--reload")

    click.echo(f"Starting server at http://{server_host}:{server_port}")
    click.echo("Press Ctrl+C to stop\n")

    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        logger.info("Server stopped")
    except subprocess.CalledProcessError as e:
        logger.error("Server failed to start", extra={"exit_code": e.returncode})
        sys.exit(e.returncode)


# =============================================================================
# Telegram
# =============================================================================


def run_telegram_setup(logger, use_ngrok: bool, webhook_url: str | None, port: int | None) -> None:
    """Register the webhook and the bot commands with Telegram."""
    from budget_manager.backend.core.config import get_app_config, get_settings

    settings = get_settings()
    telegram_config = get_app_config().telegram

    if not settings.telegram_bot_token:
        _fail("TELEGRAM_BOT_TOKEN is not set in config/.env.")
    if not telegram_config.bot_username:
        _fail("bot_username is empty in config/settings/telegram.yaml.")

    if use_ngrok:
        if not settings.ngrok_authtoken:
            _fail("NGROK_AUTHTOKEN is not set in config/.env.")
        asyncio.run(_setup_with_ngrok(logger, _get_service_port(port)))
        return

    base_url = webhook_url or telegram_config.webhook_url
    if not base_url:
        _fail("No webhook URL. Pass --webhook-url, set webhook_url in telegram.yaml, or use --ngrok.")

    asyncio.run(_configure_webhook(logger, base_url))


async def _configure_webhook(logger, base_url: str) -> None:
    from budget_manager.backend.core.config import get_settings
    from budget_manager.backend.core.exceptions import ValidationError
    from budget_manager.telegram.setup import configure_bot
    from budget_manager.telegram.webhook import get_webhook_url

    settings = get_settings()
    url = get_webhook_url(base_url)

    try:
        result = await configure_bot(
            settings.telegram_bot_token,
            url,
            secret_token=settings.telegram_webhook_secret or None,
        )
    except ValidationError as e:
        _fail(e.message)

    logger.info("Telegram webhook configured", extra={"webhook_url": url, "bot": result.bot_username})
    click.echo(click.style(f"Bot @{result.bot_username} configured", fg="green"))
    click.echo(f"  Webhook:  {result.webhook_url}")
    click.echo(f"  Commands: {', '.join('/' + c for c in result.commands)}")


async def _setup_with_ngrok(logger, port: int) -> None:
    """Open a tunnel to the local server, point the webhook at it and hold it open."""
    import ngrok

    from budget_manager.backend.core.config import get_settings

    authtoken = get_settings().ngrok_authtoken
    if authtoken:
        listener = await ngrok.forward(port, authtoken=authtoken)
    else:
        listener = await ngrok.forward(port, authtoken_from_env=True)
    public_url = listener.url()
    logger.info("ngrok tunnel opened", extra={"public_url": public_url, "port": port})
    click.echo(f"Tunnel: {public_url} -> localhost:{port}")

    try:
        await _configure_webhook(logger, public_url)
        click.echo("\nTunnel is open. Press Ctrl+C to close it.")
        await asyncio.Event().wait()
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("ngrok tunnel closing")
    finally:
        await listener.close()


def run_telegram_poll(logger) -> None:
    """Start the Telegram bot in polling mode for local development."""
    from budget_manager.backend.core.config import get_app_config

    if not get_app_config().features.channel_telegram_enabled:
        _fail(
            "channel_telegram_enabled is false in features.yaml. "
            "Enable it to use the Telegram bot."
        )

    logger.info("Starting Telegram bot in polling mode")

    try:
        from budget_manager.telegram.bot import create_bot, create_dispatcher

        bot = create_bot()
        dp = create_dispatcher()

        click.echo("Starting Telegram bot (polling mode)")
        click.echo("Send /start to your bot on Telegram")
        click.echo("Press Ctrl+C to stop\n")

        asyncio.run(_run_polling(bot, dp, logger))

    except RuntimeError as e:
        logger.error("Telegram bot failed to start", extra={"error": str(e)})
        _fail(str(e))


async def _run_polling(bot, dp, logger) -> None:
    """Run the bot polling loop."""
    try:
        await bot.delete_webhook(drop_pending_updates=True)
        logger.info("Webhook deleted, starting polling")
        await dp.start_polling(bot)
    except KeyboardInterrupt:
        logger.info("Telegram bot stopped")
    finally:
        await bot.session.close()


# =============================================================================
# Budget
# =============================================================================


def run_budget(
    logger,
    token: str | None,
    year: int | None,
    month: int | None,
    income: float | None,
    send_telegram: bool,
) -> None:
    """Show a month's budget, optionally saving its income first."""
    from budget_manager.backend.core.utils import utc_now

    if not token:
        _fail("--token (or BUDGET_MANAGER_TOKEN) is required. Sign in through the web app to get one.")

    now = utc_now()
    year = year or now.year
    month = month or now.month

    asyncio.run(_run_budget(logger, token, year, month, income, send_telegram))


async def _run_budget(
    logger,
    token: str,
    year: int,
    month: int,
    income: float | None,
    send_telegram: bool,
) -> None:
    import httpx

    from budget_manager.cli.budget import MONTH_NAMES, BudgetWorkspace, WorkspaceError
    from budget_manager.cli.client import APIClient, APIError

    async with APIClient(token=token) as client:
        workspace = BudgetWorkspace(client)
        try:
            await workspace.load_budgets()
            workspace.select(year, month)

            if income is not None:
                await workspace.save_income(year, month, income)

            if workspace.selected is None:
                click.echo(f"No budget for {MONTH_NAMES[month - 1]} {year}. Pass --income to create one.")
                return

            items = await workspace.load_items()
            _print_budget(workspace.selected, items)

            if send_telegram:
                await workspace.send_summary_to_telegram()
                click.echo(click.style("\nSummary sent to Telegram", fg="green"))

        except APIError as e:
            logger.error("Budget command failed", extra={"status_code": e.status_code, "error": e.message})
            _fail(e.message)
        except WorkspaceError as e:
            _fail(str(e))
        except httpx.HTTPError as e:
            _fail(f"Could not reach the server: {e}")


def _print_budget(budget: dict, items: list) -> None:
    from budget_manager.cli.budget import MONTH_NAMES

    click.echo(f"{MONTH_NAMES[int(budget['month']) - 1]} {budget['year']}  (income {float(budget['income']):,.2f})")
    click.echo("-" * 50)
    if not items:
        click.echo("  No budget items")
    for item in items:
        color = "green" if item.status == "Spent" else "yellow"
        status = click.style(f"{item.status:<8}", fg=color)
        click.echo(f"  {status} {item.name:<20} {item.spent:>10,.2f} / {item.cost:,.2f}")
    click.echo("-" * 50)


# =============================================================================
# Diagnostics
# =============================================================================


def check_health(logger) -> None:
    """Check application health by testing imports and configuration."""
    click.echo("Checking application health...\n")

    checks = []

    try:
        from budget_manager.backend.core.config import get_app_config
        from budget_manager.backend.core.exceptions import ApplicationError  # noqa: F401
        checks.append(("Core imports", True, None))
        logger.debug("Core imports successful")
    except Exception as e:
        checks.append(("Core imports", False, str(e)))
        logger.error("Core imports failed", extra={"error": str(e)})

    try:
        app_name = get_app_config().application.name
        checks.append(("YAML configuration", True, f"App: {app_name}"))
        logger.debug("Configuration loaded", extra={"app_name": app_name})
    except Exception as e:
        checks.append(("YAML configuration", False, str(e)))
        logger.error("Configuration failed", extra={"error": str(e)})

    try:
        from budget_manager.backend.core.config import get_settings
        settings = get_settings()
        detail = "Telegram token set" if settings.telegram_bot_token else "Telegram token not set"
        checks.append(("Secrets (config/.env)", True, detail))
    except Exception as e:
        checks.append(("Secrets (config/.env)", False, str(e)))
        logger.warning("Secrets not configured", extra={"error": str(e)})

    try:
        from budget_manager.backend.main import get_app
        app = get_app()
        checks.append(("FastAPI application", True, f"Title: {app.title}"))
        logger.debug("FastAPI app loaded", extra={"title": app.title})
    except Exception as e:
        checks.append(("FastAPI application", False, str(e)))
        logger.error("FastAPI app failed", extra={"error": str(e)})

    try:
        from budget_manager.backend.storage.schema import TABLES
        checks.append(("Spreadsheet schema", True, f"{len(TABLES)} tables"))
    except Exception as e:
        checks.append(("Spreadsheet schema", False, str(e)))
        logger.error("Spreadsheet schema failed", extra={"error": str(e)})

    click.echo("Health Check Results:")
    click.echo("-" * 50)

    all_passed = True
    for name, passed, detail in checks:
        status = click.style("✓ PASS", fg="green") if passed else click.style("✗ FAIL", fg="red")
        detail_str = f" ({detail})" if detail else ""
        click.echo(f"  {status}  {name}{detail_str}")
        if not passed:
            all_passed = False

    click.echo("-" * 50)

    if all_passed:
        click.echo(click.style("\nAll checks passed!", fg="green"))
    else:
        click.echo(click.style("\nSome checks failed. See details above.", fg="yellow"))
        click.echo("Note: secrets require config/.env (see config/.env.example).")


def _echo_section(title: str, values: dict) -> None:
    click.echo(f"\n{title}:")
    click.echo("-" * 40)
    for key, value in values.items():
        if isinstance(value, dict):
            click.echo(f"  {key}:")
            for k, v in value.items():
                click.echo(f"    {k}: {v}")
        else:
            click.echo(f"  {key}: {value}")


def show_config(logger) -> None:
    """Display loaded configuration."""
    click.echo("Application Configuration:")

    try:
        from budget_manager.backend.core.config import get_app_config

        app_config = get_app_config()

        _echo_section("Application Settings (from YAML)", app_config.application.model_dump())
        _echo_section("Google Settings (from YAML)", app_config.google.model_dump())
        _echo_section("Telegram Settings (from YAML)", app_config.telegram.model_dump(exclude={"commands"}))
        _echo_section("Logging Settings (from YAML)", app_config.logging.model_dump())
        _echo_section("Feature Flags (from YAML)", app_config.features.model_dump())

        logger.info("Configuration displayed successfully")

    except Exception as e:
        logger.error("Failed to load configuration", extra={"error": str(e)})
        _fail(f"Error loading configuration: {e}")


def run_tests(logger, test_type: str, coverage: bool) -> None:
    """Run the test suite."""
    logger.info("Running tests", extra={"type": test_type, "coverage": coverage})

    cmd = [sys.executable, "-m", "pytest"]

    if test_type == "unit":
        cmd.append("tests/unit")
    elif test_type == "integration":
        cmd.append("tests/integration")
    else:
        cmd.append("tests/")

    cmd.append("-v")

    if coverage:
        cmd.extend(["--cov=budget_manager", "--cov-report=term-missing"])

    click.echo(f"Running: {' '.join(cmd)}\n")

    try:
        result = subprocess.run(cmd)
        sys.exit(result.returncode)
    except FileNotFoundError:
        logger.error("pytest not found. Install with: pip install -e .[test]")
        sys.exit(1)


def show_info(logger) -> None:
    """Display application information."""
    try:
        from budget_manager.backend.core.config import get_app_config
        application = get_app_config().application
    except Exception as e:
        logger.error("Failed to load application configuration", extra={"error": str(e)})
        _fail("Could not load application.yaml configuration.")

    click.echo(application.name)
    click.echo("=" * 40)
    click.echo(f"Version: {application.version}")
    click.echo(f"Description: {application.description}")

    click.echo()
    click.echo("Services (--service):")
    click.echo("  server          FastAPI development server")
    click.echo("  telegram-setup  Register the webhook and bot commands")
    click.echo("  telegram-poll   Telegram bot (polling, local dev)")
    click.echo("  budget          Show a month's budget, save its income")
    click.echo("  health          Check application health")
    click.echo("  config          Display configuration")
    click.echo("  test            Run test suite")
    click.echo("  info            Show this information")
    click.echo()
    click.echo("Lifecycle actions (--action, for long-running services):")
    click.echo("  start          Start the service (default)")
    click.echo("  stop           Stop a running service")
    click.echo("  restart        Stop then start")
    click.echo("  status         Check if running")
    click.echo()
    click.echo("Examples:")
    click.echo("  python cli.py --service server --reload --verbose")
    click.echo("  python cli.py --service telegram-setup --ngrok")
    click.echo("  python cli.py --service budget --token <jwt> --income 4200 --send-telegram")

    logger.debug("Info displayed")


if __name__ == "__main__":
    main()
