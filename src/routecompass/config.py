import json
import logging
import os

DEFAULTS = {
    'window_days': 30,               # "nächste 30 Tage" beim Synchronisieren
    'default_visit_time': '09:00',
    'default_visit_notes': 'Scheduled visit',
    'db_path': None,
}


def _config_path():
    base = os.path.join(os.path.expanduser('~'), '.routecompass')
    os.makedirs(base, exist_ok=True)
    return os.path.join(base, 'routecompass_config.json')


def load_config(path: str = None) -> dict:
    """Gespeicherte Werte über die Defaults legen; bei kaputter Datei nur Defaults."""
    path = path or _config_path()
    cfg = dict(DEFAULTS)
    if not os.path.exists(path):
        return cfg
    try:
        with open(path, 'r', encoding='utf-8') as f:
            stored = json.load(f)
    except (OSError, ValueError) as e:
        logging.error(f"Konfiguration {path} nicht lesbar: {e}")
        return cfg
    if isinstance(stored, dict):
        cfg.update(stored)
    return cfg


def save_config(cfg: dict, path: str = None):
    path = path or _config_path()
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(cfg, f, ensure_ascii=False, indent=2)
