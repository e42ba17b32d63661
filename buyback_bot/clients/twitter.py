"""X/Twitter announcements. Optional: only active when all credentials are set."""
import logging
from typing import List, Optional

import tweepy

from buyback_bot.core.config import Secrets, TwitterConfig
from buyback_bot.core.types import BuybackResult


logger = logging.getLogger("buyback_bot.twitter")


def format_buyback_tweet(result: BuybackResult, hashtags: List[str]) -> str:
    return (
        "🔄 Buyback executed!\n\n"
        f"💰 {result.input_amount:.4f} SOL → {result.output_amount:.0f} tokens\n"
        f"📊 Impact: {result.price_impact}%\n\n"
        f"{' '.join(hashtags)}"
    ).rstrip()


class TwitterAnnouncer:
    def __init__(self, secrets: Secrets, cfg: TwitterConfig | None = None, client=None) -> None:
        self.cfg = cfg or TwitterConfig()
        self._client = client or tweepy.Client(
            consumer_key=secrets.twitter_api_key,
            consumer_secret=secrets.twitter_api_secret,
            access_token=secrets.twitter_access_token,
            access_token_secret=secrets.twitter_access_secret,
        )

    def verify_connection(self) -> bool:
        try:
            me = self._client.get_me()
            logger.info(f"✅ Twitter connected as @{me.data.username}")
            return True
        except Exception as e:
            logger.error(f"Twitter connection failed: {e}")
            return False

    def post_tweet(self, content: str) -> Optional[str]:
        """Returns the tweet id, or None if posting failed."""
        try:
            response = self._client.create_tweet(text=content)
            tweet_id = response.data.get("id") if response.data else None
            logger.info(f"📢 Tweet posted: id={tweet_id} len={len(content)}")
            return tweet_id
        except Exception as e:
            logger.error(f"Error posting tweet: {e}")
            return None

    def announce_buyback(self, result: BuybackResult) -> Optional[str]:
        return self.post_tweet(format_buyback_tweet(result, self.cfg.hashtags))
