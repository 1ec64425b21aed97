import os
import sys

# Add the project directory to sys.path
sys.path.append(os.getcwd())

from main import app
from cruiser.routes.responses import get_reconciler

with app.app_context():
    reconciler = get_reconciler()

    orphans = reconciler.find_orphaned_stops()
    if not orphans:
        print("No orphaned stops found.")
    for route, stop in orphans:
        print(f"Route {route.id} ({route.name}): stop {stop.id} -> {stop.roll_number} {stop.student_name}")

    if '--sync-names' in sys.argv:
        changed = reconciler.sync_student_names()
        print(f"Re-synced {changed} student names.")
