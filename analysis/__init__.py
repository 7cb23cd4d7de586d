"""
Analysis package for the Banker's Scheduler Simulator.
Contains the event log, schedule metrics and the state reporter.
"""
