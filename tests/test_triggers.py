"""
tests/test_triggers.py — Cron expressions and the trigger binder.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from stackwire.core.app import App
from stackwire.core.resources import FunctionResource, TableResource
from stackwire.core.stack import Stack
from stackwire.errors import ConfigurationError, InvalidReferenceError
from stackwire.provision.driver import DryRunDriver, apply_plan
from stackwire.triggers.binder import bind_event_rule, bind_schedule, triggers_of, unbind
from stackwire.triggers.cron import CronExpression, as_cron, cron


def _fn(name="fn"):
    return FunctionResource(name, runtime="provided.al2", artifact_ref="bootstrap.zip")


# ─────────────────────────────────────────────
# CRON
# ─────────────────────────────────────────────
class TestCron:
    def test_builder_defaults(self):
        assert str(cron(minute="0", hour="0")) == "cron(0 0 * * ? *)"

    def test_builder_week_day(self):
        c = cron(minute=30, hour=9, week_day="MON-FRI")
        assert str(c) == "cron(30 9 ? * MON-FRI *)"

    def test_parse(self):
        c = CronExpression.parse("cron(59 23 * * ? *)")
        assert c.minute == "59"
        assert c.hour == "23"
        assert c.day_of_week == "?"
        assert CronExpression.parse("59 23 * * ? *") == c

    def test_parse_wrong_field_count(self):
        with pytest.raises(ConfigurationError, match="6 fields"):
            CronExpression.parse("0 0 * * ?")

    @pytest.mark.parametrize("expr", [
        "0 0 * * ? *",
        "*/5 * * * ? *",
        "0 8-17 ? * 2-6 *",
        "15,45 0 1 JAN-MAR ? 2030",
        "0 12 ? * SUN *",
        "0/15 0 1 * ? *",
        "0 0 1 * * *",
    ])
    def test_accepted(self, expr):
        CronExpression.parse(expr)

    @pytest.mark.parametrize("expr,field", [
        ("60 0 * * ? *", "minute"),
        ("0 24 * * ? *", "hour"),
        ("0 0 0 * ? *", "day-of-month"),
        ("0 0 32 * ? *", "day-of-month"),
        ("0 0 * 13 ? *", "month"),
        ("0 0 ? * 8 *", "day-of-week"),
        ("0 0 * * ? 1969", "year"),
        ("? 0 * * ? *", "minute"),
        ("0 0 * * ? *x", "year"),
        ("0 5-2 * * ? *", "hour"),
        ("*/0 0 * * ? *", "minute"),
        ("0 0 L * ? *", "day-of-month"),
        ("² 0 * * ? *", "minute"),
        ("0 ٣ * * ? *", "hour"),
    ])
    def test_rejected(self, expr, field):
        with pytest.raises(ConfigurationError, match=field):
            CronExpression.parse(expr)

    def test_both_question_marks_rejected(self):
        with pytest.raises(ConfigurationError, match="both be '\\?'"):
            CronExpression(day_of_month="?", day_of_week="?")

    def test_hour_24_rejected(self):
        with pytest.raises(ConfigurationError, match="hour"):
            cron(minute=0, hour=24)

    def test_non_string_field(self):
        with pytest.raises(ConfigurationError, match="minute"):
            CronExpression(minute=None)

    def test_as_cron(self):
        assert as_cron("0 0 * * ? *") == cron(minute=0, hour=0)
        assert as_cron({"minute": "0", "hour": "0"}) == cron(minute=0, hour=0)
        with pytest.raises(ConfigurationError, match="Invalid cron fields"):
            as_cron({"minutes": "0"})
        with pytest.raises(ConfigurationError, match="Unsupported"):
            as_cron(42)


# ─────────────────────────────────────────────
# BINDER
# ─────────────────────────────────────────────
class TestBindSchedule:
    def test_bind(self):
        app = App()
        s = Stack(app, "s")
        f = s.declare(_fn())
        sched = bind_schedule(s, f, cron(minute=0, hour=0), name="nightly",
                              timezone="America/New_York", description="pull")
        props = sched.spec.render()["properties"]
        assert sched.kind == "Schedule"
        assert props["scheduleExpression"] == "cron(0 0 * * ? *)"
        assert props["timezone"] == "America/New_York"
        assert props["target"] == "s/fn"
        assert props["enabled"] is True

    def test_multiple_schedules_one_function(self):
        app = App()
        s = Stack(app, "s")
        f = s.declare(_fn())
        a = bind_schedule(s, f, "0 0 * * ? *", name="midnight")
        b = bind_schedule(s, f, {"minute": "59", "hour": "23"}, name="before-midnight")
        assert a is not b
        assert triggers_of(s, f) == [a, b]

    def test_unbind_leaves_others(self):
        app = App()
        s = Stack(app, "s")
        f = s.declare(_fn())
        a = bind_schedule(s, f, "0 0 * * ? *", name="midnight")
        b = bind_schedule(s, f, "59 23 * * ? *", name="before-midnight")
        unbind(s, a)
        assert triggers_of(s, f) == [b]
        assert s.get("midnight") is None

    def test_unbind_non_trigger(self):
        app = App()
        s = Stack(app, "s")
        f = s.declare(_fn())
        with pytest.raises(InvalidReferenceError, match="not a trigger"):
            unbind(s, f)

    def test_unknown_timezone(self):
        app = App()
        s = Stack(app, "s")
        f = s.declare(_fn())
        with pytest.raises(ConfigurationError, match="timezone"):
            bind_schedule(s, f, "0 0 * * ? *", name="x", timezone="Mars/Olympus")

    def test_target_must_be_function(self):
        app = App()
        s = Stack(app, "s")
        t = s.declare(TableResource("t", partition_key="id"))
        with pytest.raises(ConfigurationError, match="must reference a Function"):
            bind_schedule(s, t, "0 0 * * ? *", name="x")

    def test_imported_target(self):
        app = App()
        with Stack(app, "a") as a:
            export = a.export(a.declare(_fn()))
        b = Stack(app, "b", imports=[export])
        sched = bind_schedule(b, export, "0 0 * * ? *", name="x")
        assert triggers_of(b, export) == [sched]

    def test_target_from_uninitialized_stack(self):
        app = App()
        a = Stack(app, "a")
        f = a.declare(_fn())
        b = Stack(app, "b")
        with pytest.raises(ConfigurationError, match="under construction"):
            bind_schedule(b, f, "0 0 * * ? *", name="x")

    def test_target_not_exported(self):
        app = App()
        with Stack(app, "a") as a:
            f = a.declare(_fn())
        b = Stack(app, "b")
        with pytest.raises(InvalidReferenceError):
            bind_schedule(b, f, "0 0 * * ? *", name="x")

    def test_target_not_exported_is_configuration_error(self):
        app = App()
        with Stack(app, "a") as a:
            f = a.declare(_fn())
        b = Stack(app, "b")
        with pytest.raises(ConfigurationError, match="was not exported to stack 'b'"):
            bind_schedule(b, f, "0 0 * * ? *", name="x")

    def test_invalid_hour_rejected_before_apply(self):
        app = App()
        driver = DryRunDriver()
        with pytest.raises(ConfigurationError, match="hour"):
            with Stack(app, "s") as s:
                f = s.declare(_fn())
                bind_schedule(s, f, {"minute": "0", "hour": "24"}, name="bad")
            apply_plan(app.plan(), driver)
        assert driver.calls == []
        assert s.get("bad") is None


class TestBindEventRule:
    def test_bind(self):
        app = App()
        s = Stack(app, "s")
        f = s.declare(_fn())
        rule = bind_event_rule(s, f, {"source": ["aws.ec2"]}, name="ec2-events")
        assert rule.kind == "EventRule"
        assert rule.spec.render()["properties"]["eventPattern"] == {"source": ["aws.ec2"]}
        assert triggers_of(s, f) == [rule]

    def test_empty_pattern(self):
        app = App()
        s = Stack(app, "s")
        f = s.declare(_fn())
        with pytest.raises(ConfigurationError, match="non-empty"):
            bind_event_rule(s, f, {}, name="x")

    def test_scalar_pattern_field(self):
        app = App()
        s = Stack(app, "s")
        f = s.declare(_fn())
        with pytest.raises(ConfigurationError, match="list or a mapping"):
            bind_event_rule(s, f, {"source": "aws.ec2"}, name="x")
