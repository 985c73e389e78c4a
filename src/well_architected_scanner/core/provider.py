"""
AWS provider for authentication and per-account client management
"""

import logging
import threading
from typing import Dict, Optional, Tuple

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .errors import ScopeError

logger = logging.getLogger(__name__)

# Retries are owned by the query client.
CLIENT_CONFIG = Config(retries={"total_max_attempts": 1, "mode": "standard"})


class AWSProvider:
    """AWS provider for authentication and service client management

    Scopes are AWS account ids. When ``role_name`` is set, every account other
    than the caller's own is reached by assuming that role in the account.
    """

    def __init__(self, access_key: str = None, secret_key: str = None,
                 session_token: str = None, region: str = 'us-east-1',
                 profile: str = None, role_name: str = None,
                 external_id: str = None):
        self.access_key = access_key
        self.secret_key = secret_key
        self.session_token = session_token
        self.region = region
        self.profile = profile
        self.role_name = role_name
        self.external_id = external_id
        self.session = self._initialize_session()
        self._account_id: Optional[str] = None
        self._sessions: Dict[str, boto3.Session] = {}
        self._clients: Dict[Tuple[str, str, str], object] = {}
        # STS calls hold only the lock of the account they serve.
        self._account_locks: Dict[str, threading.RLock] = {}
        self._identity_lock = threading.Lock()
        self._lock = threading.Lock()

    def _initialize_session(self) -> boto3.Session:
        """Initialize boto3 session with provided credentials"""
        if self.profile:
            return boto3.Session(profile_name=self.profile, region_name=self.region)
        if self.access_key and self.secret_key:
            return boto3.Session(
                aws_access_key_id=self.access_key,
                aws_secret_access_key=self.secret_key,
                aws_session_token=self.session_token,
                region_name=self.region
            )
        # Environment variables or instance metadata
        return boto3.Session(region_name=self.region)

    @property
    def account_id(self) -> str:
        """Account id of the base credentials"""
        with self._identity_lock:
            if self._account_id is None:
                sts_client = self.session.client('sts', config=CLIENT_CONFIG)
                self._account_id = sts_client.get_caller_identity()['Account']
            return self._account_id

    def _lock_for(self, account_id: str) -> threading.RLock:
        with self._lock:
            return self._account_locks.setdefault(account_id, threading.RLock())

    def session_for(self, account_id: Optional[str] = None) -> boto3.Session:
        """Return a session whose credentials act inside ``account_id``"""
        if not account_id or not self.role_name:
            return self.session
        with self._lock_for(account_id):
            session = self._sessions.get(account_id)
            if session is None:
                if account_id == self.account_id:
                    session = self.session
                else:
                    session = self._assume_role(account_id)
                self._sessions[account_id] = session
            return session

    def _assume_role(self, account_id: str) -> boto3.Session:
        role_arn = f"arn:aws:iam::{account_id}:role/{self.role_name}"
        logger.debug(f"Assuming {role_arn}")
        params = {"RoleArn": role_arn, "RoleSessionName": "well-architected-scanner"}
        if self.external_id:
            params["ExternalId"] = self.external_id
        sts_client = self.session.client('sts', config=CLIENT_CONFIG)
        credentials = sts_client.assume_role(**params)['Credentials']
        return boto3.Session(
            aws_access_key_id=credentials['AccessKeyId'],
            aws_secret_access_key=credentials['SecretAccessKey'],
            aws_session_token=credentials['SessionToken'],
            region_name=self.region
        )

    def get_client(self, service_name: str, account_id: str = None,
                   region: str = None):
        """Get boto3 client for AWS service inside an account"""
        region = region or self.region
        client_key = (service_name, account_id or "", region)
        client = self._clients.get(client_key)
        if client is not None:
            return client
        with self._lock_for(account_id or ""):
            client = self._clients.get(client_key)
            if client is None:
                session = self.session_for(account_id)
                client = session.client(service_name, region_name=region, config=CLIENT_CONFIG)
                self._clients[client_key] = client
            return client

    def validate_scope(self, account_id: str):
        """Confirm that credentials for ``account_id`` can be obtained"""
        try:
            identity = self.get_client('sts', account_id).get_caller_identity()
        except (ClientError, BotoCoreError) as e:
            raise ScopeError(account_id, f"unable to authenticate: {e}") from e
        if identity.get('Account') != account_id:
            raise ScopeError(
                account_id,
                f"credentials resolve to account {identity.get('Account')}"
            )
        logger.debug(f"Scope {account_id} authenticated as {identity.get('Arn')}")
