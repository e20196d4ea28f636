"""Broker layer shared by the publisher and subscriber utilities.

Everything that talks to pika lives here: the session lifecycle, header
encoding, confirm classification and the message types exchanged with the
broker.
"""
