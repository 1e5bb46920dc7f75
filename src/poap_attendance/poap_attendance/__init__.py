"""POAP Attendance package.

Organized by feature modules (identities, classes, attendance, badges) with a
thin Flask controller layer over service/repository layers.
"""
