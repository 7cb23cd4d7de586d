"""
Algorithms package for the Banker's Scheduler Simulator.
Contains the Banker's safety check, the execution engine and the scheduling strategies.
"""
