"""Tests for idea mapping, filtering, analytics and the idea service"""

import pytest
from fastapi import HTTPException

from mvo.modules.ideas.analytics import build_user_ideas_analytics
from mvo.modules.ideas.mapping import (
    apply_filter_conditions,
    compute_score,
    decode_rpc_ideas,
    map_db_idea,
    map_rpc_idea,
    most_voted_type,
    sort_ideas_by_field,
)
from mvo.modules.ideas.schemas import AdvancedFilterRequest, IdeaCreate, IdeaResponse, IdeaUpdate, VotesByType
from mvo.modules.ideas.service import IdeaService


def _row(**overrides):
    row = {
        "id": "idea-1",
        "title": "Solar kettle",
        "status_flag": "new",
        "content": {
            "blocks": [
                {"type": "text", "content": "Boil water with sunlight."},
                {"type": "image", "src": "https://cdn.example.com/kettle.png"},
            ],
            "hero_image": None,
            "hero_video": None,
            "description": None,
        },
        "created_at": "2024-03-01T10:00:00+00:00",
        "anonymous": False,
        "space_id": None,
        "users": {"username": "ana", "full_name": "Ana Lima", "email": "ana@example.com"},
        "idea_votes": [{"vote_type": "use"}, {"vote_type": "use"}, {"vote_type": "pay"}, {"vote_type": "dislike"}],
        "idea_tags": [{"tags": {"name": "energy"}}, {"tags": None}],
        "comments": [{"id": "c1"}, {"id": "c2"}],
    }
    row.update(overrides)
    return row


def _idea(idea_id, use=0, dislike=0, pay=0, comments=0, tags=()):
    votes = VotesByType(use=use, dislike=dislike, pay=pay)
    return IdeaResponse(
        id=idea_id,
        title=idea_id,
        author="ana",
        score=compute_score(votes),
        votes=votes.total,
        votes_by_type=votes,
        comment_count=comments,
        tags=list(tags),
    )


class TestMapping:
    def test_compute_score_weights(self):
        assert compute_score(VotesByType(use=2, dislike=1, pay=1)) == 6

    def test_map_db_idea(self):
        idea = map_db_idea(_row())
        assert idea.author == "ana"
        assert idea.votes == 4
        assert idea.votes_by_type == VotesByType(use=2, dislike=1, pay=1)
        assert idea.score == 6
        assert idea.comment_count == 2
        assert idea.tags == ["energy"]
        assert idea.description == "Boil water with sunlight."
        assert idea.image == "https://cdn.example.com/kettle.png"
        assert idea.video is None
        assert idea.creator_email == "ana@example.com"

    def test_anonymous_ideas_hide_the_author(self):
        assert map_db_idea(_row(anonymous=True)).author == "Anonymous"

    def test_author_falls_back_to_full_name_then_unknown(self):
        assert map_db_idea(_row(users={"username": None, "full_name": "Ana Lima"})).author == "Ana Lima"
        assert map_db_idea(_row(users=None)).author == "Unknown User"

    def test_legacy_list_content(self):
        idea = map_db_idea(_row(content=[{"type": "video", "src": "v.mp4"}, {"type": "text", "content": "Hi"}]))
        assert idea.video == "v.mp4"
        assert idea.description == "Hi"
        assert idea.content == [{"type": "video", "src": "v.mp4"}, {"type": "text", "content": "Hi"}]

    def test_carousel_media(self):
        content = {"blocks": [{"type": "carousel", "slides": [{"caption": "x"}, {"image": "slide.png"}]}]}
        assert map_db_idea(_row(content=content)).image == "slide.png"

    def test_hero_media_wins(self):
        content = {"blocks": [{"type": "image", "src": "block.png"}], "hero_image": "hero.png", "description": "Desc"}
        idea = map_db_idea(_row(content=content))
        assert idea.image == "hero.png"
        assert idea.description == "Desc"

    def test_map_rpc_idea(self):
        idea = map_rpc_idea({
            "id": "idea-9",
            "title": "Bike share",
            "votesByType": {"use": 3, "dislike": 0, "pay": 2},
            "commentCount": 4,
            "creator": {"username": "bo"},
            "tags": ["transport"],
        })
        assert idea.author == "bo"
        assert idea.score == 12
        assert idea.votes == 5
        assert idea.comment_count == 4

    def test_map_toggle_vote_row(self):
        idea = map_rpc_idea({
            "id": "idea-1",
            "title": "Solar kettle",
            "content": {"blocks": [], "description": "Boil water with sunlight."},
            "use_votes": 2,
            "dislike_votes": 1,
            "pay_votes": 1,
            "score": 6,
            "comment_count": 3,
        })
        assert idea.votes_by_type == VotesByType(use=2, dislike=1, pay=1)
        assert idea.votes == 4
        assert idea.score == 6
        assert idea.comment_count == 3
        assert idea.description == "Boil water with sunlight."

    def test_first_media_block_without_src_falls_back_to_carousel(self):
        content = {"blocks": [
            {"type": "text", "content": "Intro"},
            {"type": "image", "src": ""},
            {"type": "image", "src": "second.png"},
            {"type": "carousel", "slides": [{"image": "slide.png"}]},
        ]}
        assert map_db_idea(_row(content=content)).image == "slide.png"

    def test_decode_rpc_ideas(self):
        assert decode_rpc_ideas('[{"id": "a"}]') == [{"id": "a"}]
        assert decode_rpc_ideas("not json") == []
        assert decode_rpc_ideas({"id": "a"}) == []

    def test_most_voted_type(self):
        assert most_voted_type(VotesByType()) is None
        assert most_voted_type(VotesByType(use=2, pay=2)) == "use"
        assert most_voted_type(VotesByType(dislike=1, use=1)) == "dislike"


class TestFilters:
    def test_conditions_are_all_required(self):
        ideas = [_idea("a", use=5), _idea("b", use=1, pay=2), _idea("c")]
        kept = apply_filter_conditions(ideas, [
            {"field": "votes", "operator": ">=", "value": 1},
            {"field": "votes_by_type.pay", "operator": ">", "value": 0},
        ])
        assert [i.id for i in kept] == ["b"]

    def test_sort_by_field(self):
        ideas = [_idea("a", use=1), _idea("b", pay=2), _idea("c", comments=7)]
        assert [i.id for i in sort_ideas_by_field(ideas, "score")] == ["b", "a", "c"]
        assert [i.id for i in sort_ideas_by_field(ideas, "comment_count", "asc")][-1] == "c"


class TestAnalytics:
    def test_empty(self):
        analytics = build_user_ideas_analytics([])
        assert analytics.total_ideas == 0
        assert analytics.top_performing_ideas == []

    def test_aggregates(self):
        ideas = [
            _idea("a", use=2, pay=1, comments=3, tags=["energy"]),
            _idea("b", dislike=2, tags=["energy", "home"]),
        ]
        analytics = build_user_ideas_analytics(ideas)
        assert analytics.total_ideas == 2
        assert analytics.total_votes == 5
        assert analytics.total_comments == 3
        assert analytics.average_score == pytest.approx((7 - 2) / 2)
        assert analytics.engagement_rate == pytest.approx(40)
        assert analytics.vote_type_breakdown == VotesByType(use=2, dislike=2, pay=1)
        assert analytics.category_breakdown == {"energy": 2, "home": 1}
        assert analytics.feasibility_score == pytest.approx(50)
        assert [i.id for i in analytics.top_performing_ideas] == ["a", "b"]
        assert [i.id for i in analytics.most_discussed_ideas] == ["a", "b"]
        assert analytics.sentiment_analysis.negative == pytest.approx(100)


class TestIdeaService:
    def test_get_missing_idea(self, fake_supabase):
        with pytest.raises(HTTPException) as exc:
            IdeaService(fake_supabase).get_idea_by_id("nope")
        assert exc.value.status_code == 404

    def test_list_filters_by_space(self, fake_supabase):
        fake_supabase.seed("ideas", _row(id="a", space_id="s1"), _row(id="b", space_id="s2"))
        ideas = IdeaService(fake_supabase).list_ideas(space_id="s1")
        assert [i.id for i in ideas] == ["a"]

    def test_create_links_tags_once(self, fake_supabase):
        fake_supabase.seed("tags", {"id": "tag-energy", "name": "energy"})
        service = IdeaService(fake_supabase)
        idea = service.create_idea(
            IdeaCreate(title="Solar kettle", description="Sunny", tags=["energy", " new ", "energy", ""]),
            "user-1",
        )
        assert idea.title == "Solar kettle"
        assert idea.description == "Sunny"
        stored = fake_supabase.tables["ideas"][0]
        assert stored["creator_id"] == "user-1"
        assert stored["content"]["description"] == "Sunny"
        names = sorted(t["name"] for t in fake_supabase.tables["tags"])
        assert names == ["energy", "new"]
        assert len(fake_supabase.tables["idea_tags"]) == 2

    def test_update_merges_content(self, fake_supabase):
        fake_supabase.seed("ideas", _row())
        service = IdeaService(fake_supabase)
        idea = service.update_idea("idea-1", IdeaUpdate(description="Now with a timer"))
        assert idea.description == "Now with a timer"
        assert idea.image == "https://cdn.example.com/kettle.png"
        assert idea.title == "Solar kettle"

    def test_filter_rejects_unknown_sort(self, fake_supabase):
        with pytest.raises(HTTPException) as exc:
            IdeaService(fake_supabase).get_ideas_with_filters(sort_by="random")
        assert exc.value.status_code == 400

    def test_filter_by_tag_and_popularity(self, fake_supabase):
        fake_supabase.seed(
            "ideas",
            _row(id="a", idea_votes=[{"vote_type": "use"}]),
            _row(id="b", idea_votes=[{"vote_type": "pay"}]),
            _row(id="c", idea_tags=[{"tags": {"name": "food"}}]),
        )
        ideas = IdeaService(fake_supabase).get_ideas_with_filters(sort_by="popularity", tags=["energy"])
        assert [i.id for i in ideas] == ["b", "a"]

    def test_advanced_filters_resort_derived_metrics(self, fake_supabase):
        fake_supabase.rpc_handlers["rpc_get_filtered_ideas"] = lambda params: [{
            "ideas": [
                {"id": "a", "title": "A", "votesByType": {"use": 1}},
                {"id": "b", "title": "B", "votesByType": {"pay": 1}},
            ],
            "total_count": 2,
        }]
        result = IdeaService(fake_supabase).get_ideas_with_advanced_filters(
            AdvancedFilterRequest(sort_field="score", limit=10)
        )
        assert result.total == 2
        assert [i.id for i in result.ideas] == ["b", "a"]
        name, params = fake_supabase.rpc_calls[0]
        assert params["limit_int"] == 10
        assert params["filter_conditions"] is None

    def test_delete_reports_missing(self, fake_supabase):
        assert IdeaService(fake_supabase).delete_idea("nope") is False
