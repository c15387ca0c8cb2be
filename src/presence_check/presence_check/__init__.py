"""Presence Check package.

Verifies that a student attended a class session: a geofenced, time-boxed
slot plus a face descriptor compared against the one approved by the teacher.
Organized by feature modules (slots, attendance, enrollment, ...) with a thin
Flask controller layer over service/repository layers.
"""
