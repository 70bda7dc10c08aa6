"""
tests/test_app.py — Reference application: webhook stack + league point stack.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from stackwire.apps.discord_bot import LP_SECRETS, compose
from stackwire.config import Secrets
from stackwire.core.app import App
from stackwire.errors import ConfigurationError
from stackwire.provision.driver import DryRunDriver, apply_plan


@pytest.fixture
def secrets():
    return Secrets({name: f"{name.lower()}-value" for name in LP_SECRETS})


@pytest.fixture
def app(secrets):
    return compose(App(secrets=secrets))


class TestComposition:
    def test_stacks(self, app):
        bot, lp = app.stacks
        assert bot.name == "MonkeDiscordBot"
        assert lp.name == "LeaguePointService"
        assert lp.dependencies == [bot]
        assert [e.id for e in bot.exports] == ["MonkeDiscordBot/api-handler"]

    def test_webhook_stack(self, app):
        bot = app.stack("MonkeDiscordBot")
        kinds = [r.kind for r in bot.resources]
        assert kinds == ["Function", "HttpApi", "HttpRoute"]
        route = bot.get("integration-route").spec.render()["properties"]
        assert route["routeKey"] == "POST /integration"
        assert route["integrationTarget"] == "MonkeDiscordBot/api-handler"
        api = bot.get("http-api").spec.render()["properties"]
        assert api["defaultIntegration"] == "MonkeDiscordBot/api-handler"

        fn = bot.get("api-handler").spec
        assert fn.architecture == "arm64"
        assert fn.memory == 1024
        assert fn.environment["DISCORD_BOT_TOKEN"] == "discord_bot_token-value"

    def test_league_point_stack(self, app):
        lp = app.stack("LeaguePointService")
        grants = {(g.principal.id, g.resource.id) for g in lp.grants}
        assert grants == {
            ("LeaguePointService/lp-handler", "LeaguePointService/table"),
            ("MonkeDiscordBot/api-handler", "LeaguePointService/table"),
        }
        schedules = [r for r in lp.resources if r.kind == "Schedule"]
        assert [str(s.spec.cron) for s in schedules] == [
            "cron(0 0 * * ? *)", "cron(59 23 * * ? *)",
        ]
        assert all(s.spec.timezone == "America/New_York" for s in schedules)
        assert all(s.spec.target is lp.get("lp-handler") for s in schedules)

    def test_missing_secret(self):
        with pytest.raises(ConfigurationError, match="DISCORD_BOT_TOKEN"):
            compose(App(secrets=Secrets({"DISCORD_GUILD_ID": "1"})))


class TestPlan:
    def test_order(self, app):
        plan = app.plan()
        assert plan.order == ["MonkeDiscordBot", "LeaguePointService"]
        assert plan.waves() == [["MonkeDiscordBot"], ["LeaguePointService"]]

        ids = [s.id for s in plan.stacks[1].steps]
        table = ids.index("LeaguePointService/table")
        for step_id in ids:
            if "grant(" in step_id:
                assert ids.index(step_id) > table
        assert ids.index("LeaguePointService/lp-handler") > table

    def test_apply(self, app):
        driver = DryRunDriver()
        outputs = apply_plan(app.plan(), driver)
        applied = dict(driver.calls)
        env = applied["LeaguePointService/lp-handler"]["environment"]
        assert env["LP_DB_TABLE_NAME"] == "monke-league-point-service-table"
        assert outputs["MonkeDiscordBot/api-handler"]["function_name"] == (
            "monke-discord-bot-backend-handler"
        )
        assert len(driver.calls) == len(app.plan().steps)
