"""Studies application for the EPIC-Q coordination backend.

This package contains models, services, serializers, views and route
registrations for hospitals, coordinators, ethics progress and
recruitment periods.
"""
