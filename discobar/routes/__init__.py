# ==============================================================================
# BLUEPRINTS DE LA API
# ==============================================================================
# ├── auth.py      → /api/auth (login, logout, csrf, recuperación, perfil)
# ├── users.py     → /api/users (solo admin)
# ├── tables.py    → /api/tables
# ├── catalog.py   → /api/products, /api/categories
# ├── orders.py    → /api/orders
# ├── reports.py   → /api/reports, /api/dashboard
# ├── settings.py  → /api/settings
# └── realtime.py  → /api/realtime/stream, /api/notifications/stream
# ==============================================================================


def register_blueprints(app):
    from discobar.routes import auth, catalog, orders, realtime, reports, settings, tables, users

    for module in (auth, users, tables, catalog, orders, reports, settings, realtime):
        app.register_blueprint(module.bp)
