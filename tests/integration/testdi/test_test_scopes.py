"""Integration tests for mocks, spies and multi-bindings in test-class scopes."""

from abc import ABC, abstractmethod
from typing import Annotated, List

import pytest

from testdi import All, Named, Provider, TestModule, TestScope, UnresolvableError

events = []
constructed_carts = []


class PaymentGateway(ABC):
    @abstractmethod
    def charge(self, amount: int) -> bool:
        pass


class Cart:
    def __init__(self, gateway: PaymentGateway):
        self.gateway = gateway
        self.items = []
        constructed_carts.append(self)

    def add(self, item: str) -> None:
        self.items.append(item)

    def size(self) -> int:
        return len(self.items)

    def checkout(self) -> bool:
        return self.gateway.charge(self.size())


class Ledger:
    def __init__(self):
        self.entries = []

    def record(self, amount: int) -> None:
        self.entries.append(amount)

    def total(self) -> int:
        return sum(self.entries)


class DiscountRule(ABC):
    @abstractmethod
    def apply(self, amount: int) -> int:
        pass


class SeasonalDiscount(DiscountRule):
    def apply(self, amount: int) -> int:
        return amount - 1


class LoyaltyDiscount(DiscountRule):
    def apply(self, amount: int) -> int:
        return amount - 2


class BulkDiscount(DiscountRule):
    def apply(self, amount: int) -> int:
        return amount // 2


class Warmup:
    def __init__(self):
        events.append("eager")


class TestMockScopes:
    """Mocks bound as singletons are shared; unscoped mocks are not."""

    class Module(TestModule):
        def configure_test(self):
            self.bind_mock(PaymentGateway).in_scope(TestScope.SINGLETON)
            self.bind_named_mock(PaymentGateway, "unscoped")

    def test_singleton_mock_is_shared(self, first: PaymentGateway, second: PaymentGateway):
        """Test that two resolutions return the identical mock."""
        assert first is second
        assert isinstance(first, PaymentGateway)

    def test_unscoped_mock_is_not_shared(
        self,
        first: Annotated[PaymentGateway, Named("unscoped")],
        second: Annotated[PaymentGateway, Named("unscoped")],
    ):
        """Test that two resolutions return different mocks."""
        assert first is not second


class TestSpyScopes:
    """A singleton spy wraps one injected real instance per test-class execution."""

    class Module(TestModule):
        def configure_test(self):
            constructed_carts.clear()
            self.bind_mock(PaymentGateway).in_scope(TestScope.SINGLETON)
            self.bind_spy(Cart).in_scope(TestScope.SINGLETON)

    def test_spy_forwards_and_records(self, cart: Cart, gateway: PaymentGateway):
        """Test that the spy calls the real cart, which calls the shared mock."""
        gateway.charge.reset_mock()
        gateway.charge.return_value = True
        items_before = cart.size()
        cart.add("book")

        assert cart.checkout() is True
        assert cart.items[-1] == "book"
        cart.add.assert_called_once_with("book")
        gateway.charge.assert_called_once_with(items_before + 1)

    def test_real_instance_is_constructed_once(self, first: Cart, second: Cart, gateway: PaymentGateway):
        """Test that the real cart was built once, with its dependency injected."""
        assert first is second
        assert len(constructed_carts) == 1
        assert first.gateway is gateway
        assert first.items is constructed_carts[0].items


class TestSpyOnInstance:
    """Spies around a single instance share its state."""

    class Module(TestModule):
        def configure_test(self):
            self.bind_spy(Ledger, instance=Ledger())

    def test_state_is_shared_between_spies(self, ledgers: Provider[Ledger]):
        """Test that a change made through one spy is visible through another."""
        first = ledgers.get()
        second = ledgers.get()

        first.record(5)
        first.currency = "EUR"

        assert first is not second
        assert second.total() == 5
        assert second.entries == [5]
        assert second.currency == "EUR"
        first.record.assert_called_once_with(5)
        second.record.assert_not_called()


class TestMultiBinding:
    """bind_many creates one singleton binding per implementation."""

    class Module(TestModule):
        def configure_test(self):
            self.bind_many(DiscountRule, SeasonalDiscount, LoyaltyDiscount, BulkDiscount)
            self.bind_many_named_instances(str, "currencies", "EUR", "USD")

    def test_all_implementations_are_bound(self, rules: Annotated[List[DiscountRule], All()]):
        """Test that resolving all returns one instance per implementation."""
        assert len(rules) == 3
        assert {type(rule) for rule in rules} == {SeasonalDiscount, LoyaltyDiscount, BulkDiscount}

    def test_bindings_are_singletons(
        self,
        first: Annotated[List[DiscountRule], All()],
        second: Annotated[List[DiscountRule], All()],
    ):
        """Test that each multi-binding is in the singleton scope."""
        assert all(a is b for a, b in zip(first, second))

    def test_type_is_not_bound_without_qualifier(self, rule: Provider[DiscountRule]):
        """Test that the bindings can only be resolved through their synthesized qualifiers."""
        with pytest.raises(UnresolvableError):
            rule.get()

    def test_named_group(self, currencies: Annotated[List[str], All("currencies")]):
        """Test that a named group only holds its own instances."""
        assert currencies == ["EUR", "USD"]


class TestEagerSingleton:
    """Eager singletons are realized before the first test method runs."""

    class Module(TestModule):
        def configure_test(self):
            events.clear()
            self.bind(Warmup).as_eager_singleton()

    def test_eager_singleton_precedes_first_test(self):
        """Test that construction happened before this method body."""
        events.append("test")

        assert events[0] == "eager"
        assert events.count("eager") == 1

    def test_eager_singleton_is_realized_once(self, warmup: Warmup):
        """Test that resolving the eager singleton reuses the realized instance."""
        assert isinstance(warmup, Warmup)
        assert events.count("eager") == 1
