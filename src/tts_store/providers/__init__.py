"""
External Provider Adapters.

    - synthesis.py: Speech synthesis (Amazon Polly)
    - storage.py: Object storage (Amazon S3)
    - aws.py: boto3 client construction
"""
from .aws import AwsClients, build_clients
from .storage import BaseObjectStore, S3ObjectStore
from .synthesis import BaseSynthesizer, PollySynthesizer, SynthesisResponse

__all__ = [
    "AwsClients",
    "build_clients",
    "BaseObjectStore",
    "S3ObjectStore",
    "BaseSynthesizer",
    "PollySynthesizer",
    "SynthesisResponse",
]
