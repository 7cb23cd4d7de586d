"""
Utilities package for the Banker's Scheduler Simulator.
Contains configuration, logging and descriptor loading.
"""
