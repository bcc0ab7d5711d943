"""
EE.log line builders shared by the test modules.
"""

DEFAULT_NODE = "SolNode64"
DEFAULT_NAME = "Casta (Ceres)"


def _t(t):
    return f"{t:.3f}"


def mission_name(t, name=DEFAULT_NAME, category="Arbitration"):
    return f"{_t(t)} Script [Info]: ThemedSquadOverlay.lua: Mission name: {name} - {category}"


def mission_vote(t, node=DEFAULT_NODE, name=DEFAULT_NAME):
    return (f'{_t(t)} Script [Info]: ThemedSquadOverlay.lua: ShowMissionVote {name} - Arbitration '
            f'{{"name":"{node}_EliteAlert"}}')


def host_loading(t, node=DEFAULT_NODE):
    return (f'{_t(t)} Script [Info]: ThemedSquadOverlay.lua: Host loading '
            f'{{"name":"{node}_EliteAlert"}} with MissionInfo:')


def mission_end(t, node=DEFAULT_NODE):
    return f"{_t(t)} Script [Info]: Background.lua: EliteAlertMission at {node} (Arbitration)"


def started(t):
    prefix = f"{_t(t)} " if t is not None else ""
    return f"{prefix}Sys [Info]: GameRulesImpl - changing state from SS_WAITING_FOR_PLAYERS to SS_STARTED"


def ending(t):
    return f"{_t(t)} Sys [Info]: GameRulesImpl - changing state from SS_STARTED to SS_ENDING"


def end_of_match(t):
    return f"{_t(t)} Script [Info]: EndOfMatch.lua: Initialize"


def extraction_complete(t):
    return f"{_t(t)} Script [Info]: ExtractionTimer.lua: EOM missionComplete"


def join_in_progress(t, client, node=DEFAULT_NODE):
    return f"{_t(t)} Net [Info]: Join in progress: {client} loading {node}_EliteAlert"


def send_level(t, client, node=DEFAULT_NODE):
    return f"{_t(t)} Net [Info]: Server: sending level {node}_EliteAlert to client {client}"


def player_connect(t, slot, client):
    return f"{_t(t)} Net [Info]: CreatePlayerForClient. id={slot}, user name={client}"


def wave(t, index):
    return f"{_t(t)} Script [Info]: WaveDefend.lua: Defense wave: {index}"


def round_transmission(t):
    return f"{_t(t)} Script [Info]: InterceptionMission.lua: Sending new round transmission"


def reward_transition_out(t):
    return f"{_t(t)} Script [Info]: DefenseReward.lua: DefenseReward::TransitionOut"


def drone(t, spawned=None):
    tail = f" Live 12 Spawned {spawned} Ticking 3" if spawned is not None else ""
    return f"{_t(t)} AI [Info]: OnAgentCreated /Npc/CorpusEliteShieldDroneAgent3{tail}"


def agent(t, spawned=None):
    tail = f" Live 10 Spawned {spawned} Ticking 2" if spawned is not None else ""
    return f"{_t(t)} AI [Info]: OnAgentCreated /Npc/GrineerLancerAgent{tail}"


def noise(t):
    return f"{_t(t)} Sys [Info]: Loaded texture pack"


def arbitration_mission(t0, node=DEFAULT_NODE, length=120.0, drones=3, name=DEFAULT_NAME,
                        end_markers=1, category="Arbitration"):
    """
    Lines of one complete mission whose started -> ending span is `length` seconds.
    """
    lines = [
        mission_name(t0, name, category),
        host_loading(t0 + 1, node),
        noise(t0 + 2),
        started(t0 + 10),
    ]
    spacing = length / (drones + 1)
    for i in range(drones):
        lines.append(drone(t0 + 10 + spacing * (i + 1), spawned=(i + 1) * 10))
    lines.append(ending(t0 + 10 + length))
    for k in range(end_markers):
        lines.append(mission_end(t0 + 12 + length + k, node))
    return lines


def to_text(lines, newline="\n"):
    return newline.join(lines) + newline
