from . import inquiries, inventory, invoices, orders, products, webhooks

routers = [
    orders.router,
    webhooks.router,
    inquiries.public_router,
    inquiries.router,
    invoices.router,
    invoices.public_router,
    products.router,
    inventory.router,
]
