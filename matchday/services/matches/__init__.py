"""Match domain services: status machine, invites, teams, permissions, scoring.

This package contains the domain logic that HTTP routes and socket handlers
import, keeping transport concerns separated from the match rules. Every
mutating operation runs through ``concurrency.run_mutation`` and returns a
``Mutation(match, events)`` pair; the caller dispatches the events.
"""
