# marketing_auth/infrastructure/twitter_oauth_client.py
from typing import Optional, Tuple

import tweepy


class TwitterOAuthClient:
    """
    OAuth1 request-token dance against Twitter using tweepy.

    tweepy is blocking; callers run these methods in a worker thread.
    """

    def __init__(self, consumer_key: str, consumer_secret: str, callback_url: Optional[str] = None):
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.callback_url = callback_url

    def get_authorization_url(self) -> Tuple[str, str, str]:
        """Returns (authorize_url, request_token, request_token_secret)."""
        auth = tweepy.OAuth1UserHandler(
            self.consumer_key,
            self.consumer_secret,
            callback=self.callback_url,
        )
        url = auth.get_authorization_url()
        return url, auth.request_token["oauth_token"], auth.request_token["oauth_token_secret"]

    def get_access_token(self, oauth_token: str, oauth_token_secret: str, verifier: str) -> Tuple[str, str]:
        auth = tweepy.OAuth1UserHandler(self.consumer_key, self.consumer_secret)
        auth.request_token = {"oauth_token": oauth_token, "oauth_token_secret": oauth_token_secret}
        return auth.get_access_token(verifier)

    def verify_credentials(self, access_token: str, access_secret: str) -> dict:
        auth = tweepy.OAuth1UserHandler(
            self.consumer_key,
            self.consumer_secret,
            access_token,
            access_secret,
        )
        user = tweepy.API(auth).verify_credentials()
        return user._json
