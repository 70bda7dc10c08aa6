"""
stackwire.apps.discord_bot — Discord bot backend.

Two stacks:

  MonkeDiscordBot     webhook function behind an HTTP API
                      (POST /integration, default route to the same
                      function); exports the function.
  LeaguePointService  table, periodic function and two daily
                      schedules; imports the webhook function and
                      grants it read/write on the table.

    stackwire plan -a stackwire.apps.discord_bot:compose
"""

from __future__ import annotations

from stackwire.core.app import App
from stackwire.core.exports import ExportHandle
from stackwire.core.resources import (
    FunctionResource,
    HttpApi,
    Key,
    RouteResource,
    TableResource,
)
from stackwire.core.stack import Stack
from stackwire.triggers.binder import bind_schedule
from stackwire.triggers.cron import cron

DISCORD_APP_ID = "1101587526097047563"
BOT_PREFIX = "monke-discord-bot"
LP_PREFIX = "monke-league-point-service"
TIMEZONE = "America/New_York"

BOT_SECRETS = ("DISCORD_GUILD_ID", "DISCORD_BOT_TOKEN", "RIOT_API_KEY")
LP_SECRETS = BOT_SECRETS + ("TFT_RIOT_API_KEY",)


def _secret_env(app: App, names: tuple[str, ...]) -> dict[str, str]:
    app.secrets.check(names)
    return {name: app.secrets.require(name) for name in names}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# WEBHOOK STACK
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
def webhook_stack(
    app: App,
    artifact_ref: str = "target/lambda/monke-bot/bootstrap.zip",
) -> tuple[Stack, ExportHandle]:
    """Slash-command webhook: function + HTTP API. Returns the function export."""
    env = {"RUST_BACKTRACE": "1", "DISCORD_APP_ID": DISCORD_APP_ID}
    env.update(_secret_env(app, BOT_SECRETS))

    with Stack(app, "MonkeDiscordBot",
               description="Monke Discord server Slash command integration") as stack:
        handler = stack.declare(FunctionResource(
            "api-handler",
            function_name=f"{BOT_PREFIX}-backend-handler",
            runtime="provided.al2",
            artifact_ref=artifact_ref,
            memory=1024,
            architecture="arm64",
            environment=env,
            description="Monke Discord server Slash command integration",
        ))
        api = stack.declare(HttpApi(
            "http-api",
            api_name=f"{BOT_PREFIX}-backend-api",
            default_integration=handler,
        ))
        stack.declare(RouteResource(
            "integration-route",
            api=api,
            path="/integration",
            method="POST",
            target=handler,
        ))
        export = stack.export(handler)
    return stack, export


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# LEAGUE POINT STACK
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
def league_point_stack(
    app: App,
    webhook_handler: ExportHandle,
    artifact_ref: str = "target/lambda/lp-serv/bootstrap.zip",
) -> Stack:
    """League point tracker: table, periodic function, daily schedules."""
    env = {"RUST_BACKTRACE": "1", "DISCORD_APP_ID": DISCORD_APP_ID}
    env.update(_secret_env(app, LP_SECRETS))

    with Stack(app, "LeaguePointService", imports=[webhook_handler],
               description="Monke League Point tracker Service") as stack:
        table = stack.declare(TableResource(
            "table",
            table_name=f"{LP_PREFIX}-table",
            partition_key=Key("id", "S"),
            sort_key=Key("sk", "S"),
            billing_mode="PAY_PER_REQUEST",
        ))
        env["LP_DB_TABLE_NAME"] = table.output("table_name")
        handler = stack.declare(FunctionResource(
            "lp-handler",
            function_name=f"{LP_PREFIX}-backend-handler",
            runtime="provided.al2",
            artifact_ref=artifact_ref,
            memory=1024,
            architecture="arm64",
            environment=env,
            description="Monke League Point tracker Service",
        ))

        stack.grant(handler, table)
        stack.grant(webhook_handler, table)

        bind_schedule(
            stack, handler, cron(minute="0", hour="0"),
            name="midnight-schedule",
            timezone=TIMEZONE,
            description="Pull the League Points of users every day at midnight",
        )
        bind_schedule(
            stack, handler, cron(minute="59", hour="23"),
            name="before-midnight-schedule",
            timezone=TIMEZONE,
            description="Pull the League Points of users every day before midnight",
        )
    return stack


def compose(app: App) -> App:
    """Compose both stacks into ``app``."""
    _, webhook_handler = webhook_stack(app)
    league_point_stack(app, webhook_handler)
    return app
