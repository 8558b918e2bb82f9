from feud import socketio

_sweeper_started = set()


def sweep_rooms(app) -> list:
    """One sweep pass: drop abandoned rooms past the retention window."""
    with app.app_context():
        rooms = app.extensions['rooms']
        retention = int(app.config.get('ROOM_RETENTION_SEC', 3600))
        removed = rooms.sweep_expired(retention)
        if removed:
            app.logger.info(f"[sweep] removed {len(removed)} room(s): {', '.join(removed)} remaining={len(rooms)}")
        else:
            app.logger.debug(f"[sweep] nothing to remove remaining={len(rooms)}")
        return removed


def schedule_room_sweep(app) -> None:
    """Start the periodic room sweep for ``app``.

    - No-ops in TESTING mode
    - Ensures a single sweeper per application
    """
    if app.config.get('TESTING'):
        return
    key = id(app)
    if key in _sweeper_started:
        return
    _sweeper_started.add(key)

    interval = int(app.config.get('ROOM_SWEEP_INTERVAL_SEC', 3600))
    app.logger.info(f"[sweep-set] interval={interval}s retention={app.config.get('ROOM_RETENTION_SEC', 3600)}s")

    def _worker():
        while True:
            socketio.sleep(interval)
            try:
                sweep_rooms(app)
            except Exception:
                app.logger.exception('[sweep] pass failed')

    socketio.start_background_task(_worker)
