# src/webpanel/api/routes/__init__.py - Route registration
import importlib
import traceback

# Modules (relative to this package) and their register function
ROUTE_MODULES = [
    ("health", "register_health_routes"),
    ("sites", "register_site_routes"),
    ("cloudflare", "register_cloudflare_routes"),
    ("email", "register_email_routes"),
    ("settings", "register_settings_routes"),
]


def register_all_routes(app, dependencies):
    """
    Import each route module and register it.
    A module that fails to import or register is logged and raised;
    per-module results are kept in app.config['ROUTE_LOAD_RESULTS'].
    """
    logger = dependencies["logger"]
    results = {"ok": True, "modules": []}

    for mod_name, func_name in ROUTE_MODULES:
        entry = {"module": mod_name, "func": func_name, "ok": False, "error": None}
        try:
            mod = importlib.import_module(f".{mod_name}", __name__)
            getattr(mod, func_name)(app, dependencies)
        except Exception as e:
            entry["error"] = str(e)
            results["ok"] = False
            results["modules"].append(entry)
            app.config["ROUTE_LOAD_RESULTS"] = results
            logger.error(f"[routes] register failed {mod_name}.{func_name}: {e}")
            logger.debug(traceback.format_exc())
            raise

        entry["ok"] = True
        results["modules"].append(entry)
        logger.info(f"[routes] registered: {mod_name}.{func_name}")

    app.config["ROUTE_LOAD_RESULTS"] = results
