"""Order status changes reported back by the payment gateway."""

from storefront_ledger.domain.orders import Order
from storefront_ledger.domain.value_objects import OrderStatus
from storefront_ledger.exceptions import OrderNotFoundError
from storefront_ledger.logging_config import get_logger
from storefront_ledger.repositories.interfaces import OrderRepository
from storefront_ledger.services.interfaces import OrderService

logger = get_logger(__name__)


class OrderServiceImpl(OrderService):
    def __init__(self, order_repo: OrderRepository) -> None:
        self._repo = order_repo

    def complete(
        self, session_id: str, transaction_id: str, email: str | None = None
    ) -> Order:
        """Mark a pending order settled with the processor's transaction id."""
        order = self._get(session_id)
        order.transition_to(OrderStatus.COMPLETED)
        order.transaction_id = transaction_id
        if email:
            order.email = email
        self._repo.update(order)
        logger.info(
            "order_completed",
            order_id=str(order.id),
            transaction_id=transaction_id,
            total=order.total_amount,
        )
        return order

    def fail(self, session_id: str) -> Order:
        return self._finish(session_id, OrderStatus.FAILED)

    def cancel(self, session_id: str) -> Order:
        return self._finish(session_id, OrderStatus.CANCELED)

    def _finish(self, session_id: str, status: OrderStatus) -> Order:
        order = self._get(session_id)
        order.transition_to(status)
        self._repo.update(order)
        logger.info("order_closed", order_id=str(order.id), status=status.value)
        return order

    def _get(self, session_id: str) -> Order:
        order = self._repo.get_by_session_id(session_id)
        if order is None:
            raise OrderNotFoundError(session_id)
        return order
