"""
Change feed: route committed mutations of source entities to the
aggregators. Each handler runs after the triggering transaction commits,
so an aggregation failure never rolls back the mutation itself; it is
logged and left for the rebuilder to correct.
"""
from functools import partial

from django.db import transaction
from django.db.models.signals import post_delete, post_save, pre_save
from django.dispatch import receiver
import structlog

from .data.models import Comment, ForumPost, QuizAttempt, ReviewCard
from .domain.enums import MutationType
from .domain.events import AttemptSummary, CardView
from .services.comments import handle_comment_created
from .services.leaderboard import handle_attempt_created
from .services.search_index import remove_forum_post, sync_forum_post
from .services.summaries import handle_card_mutation

logger = structlog.get_logger()


def _deliver(handler, *args):
    try:
        handler(*args)
    except Exception:
        logger.exception("change_feed_handler_failed", handler=handler.__name__)


def _on_commit(handler, *args):
    transaction.on_commit(partial(_deliver, handler, *args))


@receiver(pre_save, sender=ReviewCard)
def capture_card_before(sender, instance, raw=False, **kwargs):
    instance._feed_before = None
    if raw or instance.pk is None:
        return
    previous = ReviewCard.objects.filter(pk=instance.pk).first()
    if previous is not None:
        instance._feed_before = CardView.from_card(previous)


@receiver(post_save, sender=ReviewCard)
def card_saved(sender, instance, created, raw=False, **kwargs):
    if raw:
        return
    after = CardView.from_card(instance)
    if created:
        _on_commit(handle_card_mutation, MutationType.CREATED, None, after)
    else:
        _on_commit(handle_card_mutation, MutationType.UPDATED,
                   getattr(instance, "_feed_before", None), after)


@receiver(post_delete, sender=ReviewCard)
def card_deleted(sender, instance, **kwargs):
    _on_commit(handle_card_mutation, MutationType.DELETED, CardView.from_card(instance), None)


def _attempt_created(attempt):
    handle_attempt_created(AttemptSummary.from_attempt(attempt))


@receiver(post_save, sender=QuizAttempt)
def attempt_saved(sender, instance, created, raw=False, **kwargs):
    # attempts are immutable; only creation feeds the leaderboard
    if created and not raw:
        _on_commit(_attempt_created, instance)


@receiver(post_save, sender=Comment)
def comment_saved(sender, instance, created, raw=False, **kwargs):
    if created and not raw:
        _on_commit(handle_comment_created, instance)


@receiver(post_save, sender=ForumPost)
def forum_post_saved(sender, instance, raw=False, **kwargs):
    if not raw:
        _on_commit(sync_forum_post, instance)


@receiver(post_delete, sender=ForumPost)
def forum_post_deleted(sender, instance, **kwargs):
    _on_commit(remove_forum_post, instance.post_id)
