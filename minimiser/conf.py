from django.conf import settings

DEFAULTS = {
    'TABLE_DELIMITER': ';',
    'MEALY_CELL_SEPARATOR': '/',
    'CLASS_PREFIX': 'X',
    'MOORE_STATE_PREFIX': 'R',
}


def get_setting(name: str):
    """Looks ``name`` up in ``settings.FSM_MINIMISER``, falling back to the defaults."""
    if name not in DEFAULTS:
        raise KeyError(f"Unknown minimiser setting: {name}")
    overrides = getattr(settings, 'FSM_MINIMISER', {})
    return overrides.get(name, DEFAULTS[name])
