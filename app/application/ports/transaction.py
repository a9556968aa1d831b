from typing import ContextManager, Protocol


class TransactionManager(Protocol):
    def atomic(self) -> ContextManager[None]:
        """All repository writes inside the block commit together or not at all."""
        ...
