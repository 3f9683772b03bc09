"""Experiment harness: scenarios, replications and lead-time reports."""
