from app.core.clock import Clock, system_clock

def get_clock() -> Clock:
    """Wall clock for deadline and promo-window checks; overridden in tests."""
    return system_clock
