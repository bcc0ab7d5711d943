"""
Marker grammar for Arbitration missions in EE.log.

Each marker is a named recognizer. `recognize()` applies the whole table to a
line and returns the matches by name; precedence between markers and the
first/last-occurrence rules live in the segment state machine.
"""

import re
from collections import OrderedDict
from typing import Dict, Optional

# Both the English and the Chinese client name the category
ARBITRATION = r'(?:Arbitration|仲裁)'

# Inline node reference carried by vote and host-loading lines
NODE_REFERENCE_PATTERN = re.compile(r'"name":"(?P<node>[^"]+)_EliteAlert"')

# Payload of a generic spawn line
SPAWNED_PATTERN = re.compile(r'\bSpawned\s+(?P<spawned>\d+)\b')

MISSION_NAME = "mission_name"
MISSION_VOTE = "mission_vote"
HOST_LOADING = "host_loading"
MISSION_END = "mission_end"
STATE_STARTED = "state_started"
STATE_ENDING = "state_ending"
SETTLEMENT_EOM = "settlement_eom"
SETTLEMENT_EXTRACTION = "settlement_extraction"
JOIN_IN_PROGRESS = "join_in_progress"
SEND_LEVEL = "send_level"
PLAYER_CONNECT = "player_connect"
WAVE = "wave"
ROUND_TRANSMISSION = "round_transmission"
REWARD_TRANSITION_OUT = "reward_transition_out"
SHIELD_DRONE = "shield_drone"
AGENT_CREATED = "agent_created"

MARKER_TABLE = OrderedDict([
    # Segment boundaries
    (MISSION_NAME, re.compile(
        r'Script \[Info\]: ThemedSquadOverlay\.lua: Mission name:\s*(?P<name>.+?)\s*-\s*' + ARBITRATION)),
    (MISSION_VOTE, re.compile(
        r'Script \[Info\]: ThemedSquadOverlay\.lua: ShowMissionVote\s+(?P<name>.+?)\s*-\s*' + ARBITRATION)),
    (HOST_LOADING, re.compile(
        r'Script \[Info\]: ThemedSquadOverlay\.lua: Host loading .*"name":"(?P<node>[^"]+)_EliteAlert"')),
    (MISSION_END, re.compile(
        r'Script \[Info\]: Background\.lua: EliteAlertMission at (?P<node>[A-Za-z0-9_]+)\b')),

    # Game state transitions
    (STATE_STARTED, re.compile(
        r'GameRulesImpl - changing state from SS_WAITING_FOR_PLAYERS to SS_STARTED')),
    (STATE_ENDING, re.compile(
        r'GameRulesImpl - changing state from SS_STARTED to SS_ENDING')),

    # End-of-mission UI
    (SETTLEMENT_EOM, re.compile(r'Script \[Info\]: EndOfMatch\.lua: Initialize\b')),
    (SETTLEMENT_EXTRACTION, re.compile(r'Script \[Info\]: ExtractionTimer\.lua: EOM missionComplete\b')),

    # Clients joining the session
    (JOIN_IN_PROGRESS, re.compile(
        r'Net \[Info\]: Join in progress: (?P<client>\S+) loading (?P<node>[A-Za-z0-9_]+?)_EliteAlert\b')),
    (SEND_LEVEL, re.compile(
        r'Net \[Info\]: Server: sending level (?P<node>[A-Za-z0-9_]+?)_EliteAlert to client (?P<client>\S+)')),
    (PLAYER_CONNECT, re.compile(
        r'Net \[Info\]: CreatePlayerForClient\. id=(?P<slot>\d{1,9}), user name=(?P<client>\S+)')),

    # Phases
    (WAVE, re.compile(r'Script \[Info\]: WaveDefend\.lua: Defense wave: (?P<wave>\d{1,9})\b')),
    (ROUND_TRANSMISSION, re.compile(r'Script \[Info\]: \w+\.lua: Sending new round transmission\b')),
    (REWARD_TRANSITION_OUT, re.compile(r'Script \[Info\]: DefenseReward\.lua: DefenseReward::TransitionOut\b')),

    # Spawns
    (SHIELD_DRONE, re.compile(r'AI \[Info\]: OnAgentCreated /Npc/CorpusEliteShieldDroneAgent\d*\b')),
    (AGENT_CREATED, re.compile(r'AI \[Info\]: OnAgentCreated\b')),
])


def recognize(text: str) -> Dict[str, re.Match]:
    """
    Apply every marker of the grammar to a line.

    Args:
        text: The line text

    Returns:
        Matches keyed by marker name, in table order. Empty for unrelated lines.
    """
    found = {}
    for name, pattern in MARKER_TABLE.items():
        match = pattern.search(text)
        if match:
            found[name] = match
    return found


def inline_node(text: str) -> Optional[str]:
    match = NODE_REFERENCE_PATTERN.search(text)
    return match.group("node") if match else None


def spawned_payload(text: str) -> Optional[int]:
    match = SPAWNED_PATTERN.search(text)
    if not match:
        return None
    try:
        return int(match.group("spawned"))
    except ValueError:
        return None
