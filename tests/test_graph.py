"""
tests/test_graph.py — Dependency Graph Builder tests.

Topological sort, stack order, intra-stack ordering,
cycle detection and plan rendering.
"""

import os
import sys

import pytest
import yaml

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from stackwire.core.app import App
from stackwire.core.resources import FunctionResource, TableResource, HttpApi, RouteResource
from stackwire.core.stack import Stack
from stackwire.errors import TopologyError
from stackwire.graph.builder import build_plan, toposort
from stackwire.provision.driver import DryRunDriver, apply_plan
from stackwire.triggers.binder import bind_schedule
from stackwire.triggers.cron import cron


def _fn(name="fn", **kwargs):
    return FunctionResource(name, runtime="python3.12", artifact_ref="bundle.zip", **kwargs)


def _table(name="t"):
    return TableResource(name, partition_key="id")


def _two_stacks():
    """A exports f; B imports f and grants its own table t to it."""
    app = App()
    with Stack(app, "A") as a:
        f = a.declare(_fn("f"))
        export = a.export(f)
    with Stack(app, "B", imports=[export]) as b:
        t = b.declare(_table("t"))
        b.grant(export, t)
    return app


# ─────────────────────────────────────────────
# TOPOSORT
# ─────────────────────────────────────────────
class TestToposort:
    def test_no_edges_keeps_input_order(self):
        assert toposort(["c", "a", "b"], {}) == ["c", "a", "b"]

    def test_dependencies_first(self):
        order = toposort(["app", "db", "cache"], {"app": ["db", "cache"]})
        assert order == ["db", "cache", "app"]

    def test_stable_tie_breaking(self):
        nodes = ["x", "y", "z", "w"]
        deps = {"w": ["x"], "y": ["z"]}
        assert toposort(nodes, deps) == ["x", "z", "y", "w"]

    def test_unknown_dependencies_ignored(self):
        assert toposort(["a"], {"a": ["elsewhere"]}) == ["a"]

    def test_cycle(self):
        with pytest.raises(TopologyError, match="cycle"):
            toposort(["a", "b", "c"], {"a": ["c"], "b": ["a"], "c": ["b"]})

    def test_self_cycle(self):
        with pytest.raises(TopologyError, match="a -> a"):
            toposort(["a"], {"a": ["a"]})


# ─────────────────────────────────────────────
# STACK ORDER
# ─────────────────────────────────────────────
class TestStackOrder:
    def test_two_stack_scenario(self):
        plan = build_plan(_two_stacks())
        assert plan.order == ["A", "B"]

        b_steps = [s.id for s in plan.stacks[1].steps]
        assert b_steps == ["B/t", "B/grant(A/f -> B/t)"]
        grant = plan.stacks[1].steps[1]
        assert grant.action == "grant"
        assert grant.depends_on == ["A/f", "B/t"]
        assert plan.stacks[1].depends_on == ["A"]

    def test_explicit_dependency_reorders(self):
        app = App()
        first = Stack(app, "first")
        second = Stack(app, "second")
        first.add_dependency(second)
        assert build_plan(app).order == ["second", "first"]

    def test_cycle_rejected_without_apply(self):
        app = App()
        a = Stack(app, "A")
        a.declare(_fn("f"))
        b = Stack(app, "B")
        b.declare(_fn("g"))
        b.add_dependency(a)
        a.add_dependency(b)

        driver = DryRunDriver()
        with pytest.raises(TopologyError, match="A -> B -> A|B -> A -> B"):
            apply_plan(build_plan(app), driver)
        assert driver.calls == []

    def test_cycle_through_import_and_dependency(self):
        app = App()
        with Stack(app, "A") as a:
            export = a.export(a.declare(_fn("f")))
        b = Stack(app, "B", imports=[export])
        a.add_dependency(b)
        with pytest.raises(TopologyError):
            app.plan()

    def test_self_dependency_rejected(self):
        from stackwire.errors import ConfigurationError
        app = App()
        a = Stack(app, "A")
        with pytest.raises(ConfigurationError, match="itself"):
            a.add_dependency(a)

    def test_deterministic(self):
        first = build_plan(_two_stacks()).to_yaml()
        second = build_plan(_two_stacks()).to_yaml()
        assert first == second

        app = _two_stacks()
        assert build_plan(app).to_yaml() == build_plan(app).to_yaml()

    def test_build_seals_stacks(self):
        app = App()
        s = Stack(app, "open")
        build_plan(app)
        assert s.sealed

    def test_waves(self):
        app = App()
        with Stack(app, "core") as core:
            export = core.export(core.declare(_fn("f")))
        Stack(app, "left", imports=[export])
        Stack(app, "right", imports=[export])
        Stack(app, "solo")
        assert build_plan(app).waves() == [["core", "solo"], ["left", "right"]]


# ─────────────────────────────────────────────
# INTRA-STACK ORDER
# ─────────────────────────────────────────────
class TestStepOrder:
    def test_declaration_order(self):
        app = App()
        with Stack(app, "s") as s:
            s.declare(_fn("one"))
            s.declare(_table("two"))
            s.declare(_fn("three"))
        assert [st.id for st in app.plan().steps] == ["s/one", "s/two", "s/three"]

    def test_late_environment_binding_moves_table_first(self):
        app = App()
        with Stack(app, "s") as s:
            f = s.declare(_fn("handler"))
            t = s.declare(_table("store"))
            f.set_environment("TABLE", t.output("table_name"))
        steps = app.plan().steps
        assert [st.id for st in steps] == ["s/store", "s/handler"]
        assert steps[1].depends_on == ["s/store"]

    def test_trigger_and_route_follow_target(self):
        app = App()
        with Stack(app, "s") as s:
            f = s.declare(_fn("handler"))
            api = s.declare(HttpApi("api"))
            s.declare(RouteResource("route", api=api, path="/", target=f))
            bind_schedule(s, f, cron(minute=0, hour=0), name="nightly")
        ids = [st.id for st in app.plan().steps]
        assert ids.index("s/route") > ids.index("s/api")
        assert ids.index("s/route") > ids.index("s/handler")
        assert ids.index("s/nightly") > ids.index("s/handler")

    def test_self_reference_is_cycle(self):
        app = App()
        with Stack(app, "s") as s:
            f = s.declare(_fn("loop"))
            f.set_environment("SELF", f.output("function_arn"))
        with pytest.raises(TopologyError, match="s/loop"):
            app.plan()

    def test_grant_after_principal_and_resource(self):
        app = App()
        with Stack(app, "s") as s:
            f = s.declare(_fn("f"))
            t = s.declare(_table("t"))
            s.grant(f, t)
            s.declare(_fn("later"))
        ids = [st.id for st in app.plan().steps]
        assert ids == ["s/f", "s/t", "s/grant(s/f -> s/t)", "s/later"]


# ─────────────────────────────────────────────
# RENDER
# ─────────────────────────────────────────────
class TestRender:
    def test_to_dicts(self):
        docs = build_plan(_two_stacks()).to_dicts()
        assert [d["stack"] for d in docs] == ["A", "B"]
        assert "dependsOn" not in docs[0]
        assert docs[1]["dependsOn"] == ["A"]
        grant = docs[1]["steps"][1]
        assert grant["kind"] == "Grant"
        assert grant["properties"]["permissions"] == ["read", "write"]

    def test_yaml_multi_document(self):
        text = build_plan(_two_stacks()).to_yaml()
        docs = list(yaml.safe_load_all(text))
        assert len(docs) == 2
        assert docs[0]["steps"][0]["id"] == "A/f"
        assert docs[0]["steps"][0]["properties"]["runtime"] == "python3.12"

    def test_empty_app(self):
        plan = build_plan(App())
        assert plan.steps == []
        assert plan.to_yaml() == ""
        assert plan.waves() == []
