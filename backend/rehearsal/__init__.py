"""Rehearsal: role-play conversation practice with rubric-based feedback."""
