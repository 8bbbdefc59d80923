"""Order, inquiry and inventory lifecycle controllers."""
