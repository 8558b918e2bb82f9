"""Party mode: individual players answering from their own devices.

Layered on the room aggregate next to :class:`feud.models.GameState`. Teams
battle one pair at a time; each pair opens with a face-off in which either
player may answer, after which a single player holds the turn.
"""
import uuid
from collections import OrderedDict
from typing import Dict, List, Optional, Tuple


class Player:
    def __init__(self, name: str, team: Optional[int] = None, player_id: Optional[str] = None):
        self.id = player_id or uuid.uuid4().hex[:12]
        self.name = name
        self.team = team

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'team': self.team}


class PartyState:
    def __init__(self):
        self.players: 'OrderedDict[str, Player]' = OrderedDict()
        self._reset_battle()

    def _reset_battle(self):
        self.active = False
        self.battle_index = 0
        self.face_off_active = False
        self.current_turn_player: Optional[str] = None

    # ---- Roster ----

    def team_members(self, team: int) -> List[Player]:
        return [p for p in self.players.values() if p.team == team]

    def add_player(self, name: str) -> Player:
        # Smaller team first, team 1 on ties
        team = 1 if len(self.team_members(1)) <= len(self.team_members(2)) else 2
        player = Player(name, team)
        self.players[player.id] = player
        return player

    def remove_player(self, player_id: str) -> Optional[Player]:
        player = self.players.pop(player_id, None)
        if player is not None and self.current_turn_player == player_id:
            self.current_turn_player = None
        return player

    def assign_team(self, player_id: str, team: int) -> Player:
        player = self.players.get(player_id)
        if player is None:
            raise KeyError(player_id)
        player.team = team
        return player

    def roster(self) -> List[Dict]:
        return [p.to_dict() for p in self.players.values()]

    # ---- Battles ----

    def start(self) -> None:
        self._reset_battle()
        self.active = True
        self.face_off_active = True

    def stop(self) -> None:
        self._reset_battle()

    def current_battle(self) -> Tuple[Optional[Player], Optional[Player]]:
        team1 = self.team_members(1)
        team2 = self.team_members(2)
        p1 = team1[self.battle_index % len(team1)] if team1 else None
        p2 = team2[self.battle_index % len(team2)] if team2 else None
        return p1, p2

    def next_battle(self) -> None:
        self.battle_index += 1
        self.face_off_active = True
        self.current_turn_player = None

    def in_battle(self, player_id: str) -> bool:
        return any(p is not None and p.id == player_id for p in self.current_battle())

    def set_turn(self, player_id: str) -> Player:
        if not self.in_battle(player_id):
            raise KeyError(player_id)
        self.current_turn_player = player_id
        self.face_off_active = False
        return self.players[player_id]

    def can_answer(self, player_id: str) -> bool:
        if not self.active or not self.in_battle(player_id):
            return False
        return self.face_off_active or self.current_turn_player == player_id

    def battle_dict(self):
        p1, p2 = self.current_battle()
        return {
            'battleIndex': self.battle_index,
            'team1Player': p1.to_dict() if p1 else None,
            'team2Player': p2.to_dict() if p2 else None,
            'faceOffActive': self.face_off_active,
        }

    def turn_dict(self):
        player = self.players.get(self.current_turn_player) if self.current_turn_player else None
        return {
            'currentTurnPlayer': self.current_turn_player,
            'playerName': player.name if player else None,
            'faceOffActive': self.face_off_active,
        }

    def to_dict(self):
        data = {'active': self.active, 'players': self.roster()}
        data.update(self.battle_dict())
        data.update(self.turn_dict())
        return data
