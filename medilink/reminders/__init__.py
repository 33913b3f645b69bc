"""Appointment reminder service (scheduled scan, manual probe, background display).

Runs as a Celery worker with beat for the 5-minute reminder scan, plus a small
FastAPI app for the manual test trigger and the web push service worker.
"""
