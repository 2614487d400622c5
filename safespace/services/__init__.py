"""SafeSpace microservices.

Every service hashes member identifiers with hash_identifier() before
logging, and publishes moderator alerts to Kinesis rather than calling
other services directly.
"""
