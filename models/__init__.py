"""
Models package for the Banker's Scheduler Simulator.
Contains resources, instructions, process descriptors and the allocation ledger.
"""
