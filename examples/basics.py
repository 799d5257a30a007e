import time
from dataclasses import dataclass, field
from typing import List

from ripple import memoize, unwatch, watch, watching, wrap

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Wrapping and watching")
print("-" * 100)
print()

# Any dict, list, dataclass or namespace can be wrapped. The result behaves like the original.
state = wrap({"l1": {"l2": "x"}})


def log_change(event):
    print(f"{event.kind}: {event.path} = {event.value!r} (was {event.old_value!r})")


watch(state, log_change)

# Writes anywhere below the watched value arrive with the full path.
state["test"] = {}
state["test"]["t"] = "10"
state["l1"]["l2"] = "y"

# Assigning the current value again is silent.
state["l1"]["l2"] = "y"

unwatch(state, log_change)
state["l1"]["l2"] = "z"  # This will not be printed

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Lists")
print("-" * 100)
print()

todos = wrap(["write", "test"])


# Structural mutations report a single change of the list's length.
@watching(todos)
def log_todos(event):
    print(f"todos {event.path}: {event.old_value!r} -> {event.value!r}")


todos.append("ship")
todos[0] = "design"
todos.pop()
todos.sort()  # Reordering keeps the length, so nothing is printed

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Dataclasses")
print("-" * 100)
print()


@dataclass
class Address:
    city: str


@dataclass
class User:
    name: str
    address: Address
    tags: List[str] = field(default_factory=list)


user = wrap(User("Alice", Address("Paris")))
watch(user, log_change)

user.address.city = "Lyon"
user.tags.append("admin")

# The old address is detached once it is replaced.
old_address = user.address
user.address = Address("Nice")
old_address.city = "Nowhere"  # This will not be printed

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Memoized functions")
print("-" * 100)
print()

cart = wrap({"items": [{"price": 3, "qty": 2}], "coupon": None})


def total():
    return sum(item["price"] * item["qty"] for item in cart["items"])


# memoize returns the invalidation signal and the tracked function.
signal, tracked_total = memoize(total, use_cache=True, debounce=0.05)
signal.on("change", lambda event: print(f"total is stale after {len(event.causes)} changes"))

print(f"Total: {tracked_total()}")

# The coupon was never read by total(), so this does not invalidate it.
cart["coupon"] = "SAVE10"
time.sleep(0.1)

# Several changes inside the debounce window produce one signal.
cart["items"][0]["qty"] = 3
cart["items"].append({"price": 10, "qty": 1})
time.sleep(0.1)

print(f"Total: {tracked_total()}")
