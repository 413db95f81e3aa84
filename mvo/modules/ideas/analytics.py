from typing import List, Dict
from mvo.modules.ideas.schemas import (
    IdeaResponse, IdeaStats, SentimentBreakdown, UserIdeasAnalytics, VotesByType
)


def build_user_ideas_analytics(ideas: List[IdeaResponse]) -> UserIdeasAnalytics:
    """Aggregate creator-facing stats over one user's ideas"""
    total_ideas = len(ideas)
    if total_ideas == 0:
        return UserIdeasAnalytics()

    total_votes = sum(i.votes for i in ideas)
    total_comments = sum(i.comment_count for i in ideas)
    average_score = sum(i.score for i in ideas) / total_ideas

    total_interactions = total_votes + total_comments
    engagement_rate = min(100, (total_interactions / total_ideas) * 10)

    breakdown = VotesByType(
        use=sum(i.votes_by_type.use for i in ideas),
        dislike=sum(i.votes_by_type.dislike for i in ideas),
        pay=sum(i.votes_by_type.pay for i in ideas),
    )
    impact_score = min(100, ((breakdown.pay * 3 + total_comments) / total_ideas) * 5)
    if total_votes > 0:
        feasibility_score = min(100, ((breakdown.use - breakdown.dislike) / (total_votes + 1)) * 50 + 50)
    else:
        feasibility_score = 0

    category_breakdown: Dict[str, int] = {}
    for idea in ideas:
        for tag in idea.tags:
            category_breakdown[tag] = category_breakdown.get(tag, 0) + 1

    positive = len([i for i in ideas if i.score > 50])
    neutral = len([i for i in ideas if 20 <= i.score <= 50])
    negative = len([i for i in ideas if i.score < 20])
    sentiment = SentimentBreakdown(
        positive=positive / total_ideas * 100,
        neutral=neutral / total_ideas * 100,
        negative=negative / total_ideas * 100,
    )

    ideas_with_stats = []
    for idea in ideas:
        interactions = idea.votes + idea.comment_count
        rate = min(100, (interactions / (total_interactions + 1)) * 100) if interactions > 0 else 0
        ideas_with_stats.append(IdeaStats(
            idea=idea,
            engagement_rate=rate,
            vote_distribution=idea.votes_by_type,
            category_distribution={tag: 1 for tag in idea.tags},
        ))

    by_score = sorted(ideas, key=lambda i: i.score, reverse=True)
    by_comments = sorted(ideas, key=lambda i: i.comment_count, reverse=True)

    return UserIdeasAnalytics(
        total_ideas=total_ideas,
        total_votes=total_votes,
        total_comments=total_comments,
        average_score=average_score,
        engagement_rate=engagement_rate,
        impact_score=impact_score,
        feasibility_score=feasibility_score,
        ideas_with_stats=ideas_with_stats,
        top_performing_ideas=by_score[:5],
        worst_performing_ideas=list(reversed(by_score[-3:])),
        most_discussed_ideas=by_comments[:3],
        vote_type_breakdown=breakdown,
        category_breakdown=category_breakdown,
        sentiment_analysis=sentiment,
    )
