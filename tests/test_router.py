"""Tests for tag classification."""

import pytest

from lu_replay.data.router import (
    Category, DEFAULT_RULES, PacketClassifier, TagRule, classify,
)


@pytest.mark.parametrize("tag, category", [
    ("0001_[53-01-00-00].bin", Category.SYSTEM_HANDSHAKE),
    ("0002_[53-04-00-13].bin", Category.WORLD_SYSTEM),
    ("0003_[53-02-00-01].bin", Category.WORLD_SYSTEM),
    ("0004_[53-05-00-02].bin", Category.WORLD_SYSTEM),
    ("0005_[24]_[1]_(1).bin", Category.OBJECT_CONSTRUCTION),
    ("0006_[27]_[1].bin", Category.OBJECT_UPDATE),
    ("0007_[53-00-00-00].bin", Category.IGNORED),
    ("0008_[ff]_[1].bin", Category.IGNORED),
])
def test_classify(tag, category):
    assert classify(tag) is category


def test_split_fragments_ignored_first():
    assert classify("0009_[53-05-00-02]_1 of 3.bin") is Category.IGNORED
    assert classify("0010_[27]_2 of 2.bin") is Category.IGNORED


def test_construction_requires_player_template():
    assert classify("0011_[24]_[1]_(6010).bin") is Category.IGNORED
    assert classify("0012_[24]_[1].bin") is Category.IGNORED


def test_world_deny_list():
    assert classify("0013_[53-04-00-16].bin") is Category.IGNORED
    assert classify("0014_[53-04-00-05]_[e6-00].bin") is Category.IGNORED
    assert classify("0015_[53-04-00-05]_[1308].bin") is Category.IGNORED


def test_client_deny_list():
    assert classify("0016_[53-05-00-00].bin") is Category.IGNORED
    assert classify("0017_[53-05-00-0c]_[1648].bin") is Category.IGNORED
    assert classify("0018_[53-05-00-0c]_[ff-00].bin") is Category.IGNORED


def test_denied_rule_falls_through_to_later_rules():
    # a denied client message that is also tagged as an update still routes as one
    assert classify("0019_[53-05-00-0c]_[e6-00]_[27].bin") is Category.OBJECT_UPDATE


def test_custom_rules():
    rules = (
        TagRule("[53-04-", Category.WORLD_SYSTEM, deny=("[bad]",)),
        TagRule("[bad]", Category.SYSTEM_HANDSHAKE),
    )
    assert classify("[53-04-00-01]", rules) is Category.WORLD_SYSTEM
    assert classify("[53-04-00-01][bad]", rules) is Category.SYSTEM_HANDSHAKE
    assert classify("nothing", rules) is Category.IGNORED


def test_rule_requires_every_marker():
    rule = TagRule("[24]", Category.OBJECT_CONSTRUCTION, require=("(1)", "[x]"))
    assert rule.matches("[24](1)[x]")
    assert not rule.matches("[24](1)")


def test_fragment_rule_comes_first():
    assert DEFAULT_RULES[0].category is Category.IGNORED


def test_classifier_counts():
    c = PacketClassifier()
    for tag in ("[53-01-00-00]", "[27]", "[27]", "[99]"):
        c.classify(tag)
    assert c.counts[Category.SYSTEM_HANDSHAKE] == 1
    assert c.counts[Category.OBJECT_UPDATE] == 2
    assert c.counts[Category.IGNORED] == 1
