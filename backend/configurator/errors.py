# backend/configurator/errors.py


class ConfiguratorError(Exception):
    """Base class for selection and slot errors."""


# Attempted selection of an out-of-stock variant or add-on
class Unavailable(ConfiguratorError):
    def __init__(self, item_id: str):
        super().__init__(f"{item_id} is currently out of stock")
        self.item_id = item_id


class SlotLimitReached(ConfiguratorError):
    def __init__(self, limit: int):
        super().__init__(f"You can configure up to {limit} setups")
        self.limit = limit


class UnknownSlot(ConfiguratorError):
    def __init__(self, slot_id: str):
        super().__init__(f"Configuration {slot_id} not found")
        self.slot_id = slot_id


class UnknownVariant(ConfiguratorError):
    def __init__(self, variant_id: str):
        super().__init__(f"Product {variant_id} not found")
        self.variant_id = variant_id


class DuplicateSlot(ConfiguratorError):
    def __init__(self, slot_id: str):
        super().__init__(f"Configuration {slot_id} already exists")
        self.slot_id = slot_id
