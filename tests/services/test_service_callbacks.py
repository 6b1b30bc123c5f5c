"""Tests for callback declaration, inheritance, and dispatch."""

from __future__ import annotations

from typing import Any

import pytest

from performkit.domain.callbacks import CallbackEvent, on_fail, on_success
from performkit.domain.schema import filled
from performkit.infrastructure.runtime import Runtime
from performkit.infrastructure.transactions import InMemoryTransactionProvider, RollbackSignal
from performkit.services.base import Service


class Tracked(Service):
    """Records every callback into ``self.calls``."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self.calls: list[str] = []
        super().__init__(*args, **kwargs)

    def execute(self) -> None:
        if self.ok:
            self.success()
        else:
            self.fail()

    @on_success
    def a(self) -> None:
        self.calls.append("a")

    @on_fail
    def failed_hook(self) -> None:
        self.calls.append("failed_hook")


class TrackedChild(Tracked):
    @on_success
    def b(self) -> None:
        self.calls.append("b")


class TestDispatch:
    def test_success_runs_success_hooks_only(self) -> None:
        svc = Tracked(None, {"ok": True})
        svc.execute()
        assert svc.calls == ["a"]

    def test_fail_runs_fail_hooks_only(self) -> None:
        svc = Tracked(None, {"ok": False})
        svc.execute()
        assert svc.calls == ["failed_hook"]

    def test_runs_exactly_once(self) -> None:
        svc = Tracked(None, {"ok": True})
        svc.execute()
        svc.success()
        svc.fail()
        svc.execute()
        assert svc.calls == ["a"]

    def test_pending_runs_nothing(self) -> None:
        svc = Tracked(None, {"ok": True})
        assert svc.calls == []

    def test_handler_errors_propagate(self) -> None:
        class Exploding(Service):
            def execute(self) -> None:
                self.success()

            @on_success
            def boom(self) -> None:
                raise RuntimeError("hook failed")

        svc = Exploding()
        with pytest.raises(RuntimeError, match="hook failed"):
            svc.execute()
        assert svc.succeeded is True

    def test_fail_hooks_run_on_validation_failure(self) -> None:
        class Signup(Tracked):
            schema = {"email": filled(str)}

        svc = Signup(None, {"email": ""})
        assert svc.failed is True
        assert svc.calls == ["failed_hook"]

    def test_validation_fail_hooks_run_before_init_returns(self) -> None:
        seen: list[bool] = []

        class LateInit(Service):
            schema = {"email": filled(str)}

            def __init__(self, *args: Any, **kwargs: Any) -> None:
                super().__init__(*args, **kwargs)
                self.mailer = "ready"

            def execute(self) -> None:
                self.success()

            @on_fail
            def notify(self) -> None:
                seen.append("mailer" in self.__dict__)

        svc = LateInit(None, {"email": ""})
        assert seen == [False]
        assert svc.mailer == "ready"


class TestInheritance:
    def test_ancestor_hooks_run_first(self) -> None:
        svc = TrackedChild(None, {"ok": True})
        svc.execute()
        assert svc.calls == ["a", "b"]

    def test_override_keeps_ancestor_position(self) -> None:
        class Overriding(TrackedChild):
            def a(self) -> None:
                self.calls.append("a-override")

        svc = Overriding(None, {"ok": True})
        svc.execute()
        assert svc.calls == ["a-override", "b"]

    def test_redecorated_override_not_doubled(self) -> None:
        class Redecorated(Tracked):
            @on_success
            def a(self) -> None:
                self.calls.append("a2")

        svc = Redecorated(None, {"ok": True})
        svc.execute()
        assert svc.calls == ["a2"]

    def test_parent_registry_untouched(self) -> None:
        assert [e.handler for e in Tracked.definition().callbacks.success] == ["a"]
        assert [e.handler for e in TrackedChild.definition().callbacks.success] == ["a", "b"]


class TestRegisterCallback:
    def test_method_name(self) -> None:
        class Named(Tracked):
            def notify(self) -> None:
                self.calls.append("notify")

        Named.register_callback("success", "notify")
        svc = Named(None, {"ok": True})
        svc.execute()
        assert svc.calls == ["a", "notify"]

    def test_closure_bound_to_instance(self) -> None:
        class Closure(Tracked):
            pass

        Closure.register_callback(CallbackEvent.FAIL, lambda svc: svc.calls.append(f"closure:{svc.ok}"))
        svc = Closure(None, {"ok": False})
        svc.execute()
        assert svc.calls == ["failed_hook", "closure:False"]

    def test_existing_subclasses_keep_their_copy(self) -> None:
        class Parent(Tracked):
            pass

        class Child(Parent):
            pass

        Parent.register_callback("success", lambda svc: svc.calls.append("late"))
        child = Child(None, {"ok": True})
        child.execute()
        assert child.calls == ["a"]

    def test_invalid_event(self) -> None:
        class Bad(Tracked):
            pass

        with pytest.raises(ValueError):
            Bad.register_callback("done", "a")


class TestCallbacksOutsideTransaction:
    def test_dispatch_after_commit(
        self, runtime: Runtime, memory_provider: InMemoryTransactionProvider
    ) -> None:
        observed: list[tuple[bool, int]] = []

        class Persist(Service):
            def execute(self) -> None:
                self.within_transaction(lambda txn: True)

            @on_success
            def check(self) -> None:
                observed.append((memory_provider.active, memory_provider.commits))

        Persist(runtime=runtime).execute()
        assert observed == [(False, 1)]

    def test_manual_settle_inside_block_defers_dispatch(
        self, runtime: Runtime, memory_provider: InMemoryTransactionProvider
    ) -> None:
        observed: list[bool] = []

        class EarlyFail(Service):
            def execute(self) -> None:
                self.within_transaction(self._body)

            def _body(self, txn: Any) -> bool:
                self.fail()
                observed.append(memory_provider.active)
                return True

            @on_fail
            def check(self) -> None:
                observed.append(memory_provider.active)

        svc = EarlyFail(runtime=runtime)
        svc.execute()
        assert svc.failed is True
        assert observed == [True, False]

    def test_requested_success_discarded_when_block_raises(self, runtime: Runtime) -> None:
        calls: list[str] = []

        class Broken(Service):
            def execute(self) -> None:
                self.within_transaction(self._body)

            def _body(self, txn: Any) -> bool:
                self.success()
                raise RuntimeError("after settle")

            @on_success
            def hook(self) -> None:
                calls.append("hook")

            @on_fail
            def fail_hook(self) -> None:
                calls.append("fail_hook")

        svc = Broken(runtime=runtime)
        with pytest.raises(RuntimeError):
            svc.execute()
        assert calls == []
        assert svc.pending is True

    def test_rollback_signal_after_success_runs_fail_hooks(
        self, runtime: Runtime, memory_provider: InMemoryTransactionProvider
    ) -> None:
        calls: list[str] = []

        class Welcome(Service):
            def execute(self) -> None:
                self.within_transaction(self._body)

            def _body(self, txn: Any) -> bool:
                txn.set("user", 1)
                self.success()
                raise RollbackSignal("abort")

            @on_success
            def send_welcome(self) -> None:
                calls.append("send_welcome")

            @on_fail
            def report(self) -> None:
                calls.append("report")

        svc = Welcome(runtime=runtime)
        svc.execute()
        assert svc.failed is True
        assert calls == ["report"]
        assert memory_provider.commits == 0
        assert memory_provider.store == {}


class TestCollaboratorErrorMerge:
    def test_fail_hook_copies_collaborator_errors(self, runtime: Runtime) -> None:
        class Collaborator:
            errors = {"name": ["taken"]}

        collaborator = Collaborator()

        class Rename(Service):
            def execute(self) -> None:
                self.record_errors({"name": ["blank"], "slug": ["invalid"]})
                self.within_transaction(lambda txn: False)

            @on_fail
            def copy_errors(self) -> None:
                self.record_errors(collaborator.errors)

        svc = Rename(runtime=runtime)
        svc.execute()
        assert svc.failed is True
        assert svc.errors == {"name": ["blank", "taken"], "slug": ["invalid"]}
