"""
Versioned match snapshots for reconnect and resume.

A snapshot is a lossless pydantic document of everything needed to resume a
match exactly where it stopped, including an action in flight (buffer, staged
wildcard amounts, pending development card, white marbles still to assign).
The action history is not part of it.

Bump SNAPSHOT_VERSION whenever a field changes meaning; decoding refuses any
other version instead of guessing.
"""

from __future__ import annotations
import json
from typing import Optional

from pydantic import BaseModel, Field

from ..config import RulesConfig
from ..engine_core.cards import CardManager, DevelopmentCard
from ..engine_core.effects import (
    CardRequirement,
    DepotEffect,
    DiscountEffect,
    Effect,
    EffectKind,
    Leader,
    MarbleEffect,
    ProductionEffect,
    ProductionRecipe,
)
from ..engine_core.faith_track import FaithTrack, FavorStatus
from ..engine_core.market import Marble, Market
from ..engine_core.resource_manager import ResourceManager
from ..engine_core.resources import Counts, Resource, ResourceType, to_counts, to_resources
from ..engine_core.state import GamePhase, GameState, PlayerState, TurnPhase
from ..engine_core.storage import Depot, Strongbox, Warehouse

SNAPSHOT_VERSION = 1


# =============================================================================
# Building blocks
# =============================================================================

class ResourceModel(BaseModel):
    """A typed amount of one resource."""
    type: ResourceType
    amount: int = Field(1, ge=0)

    @classmethod
    def from_resource(cls, resource: Resource) -> ResourceModel:
        return cls(type=resource.type, amount=resource.amount)

    def to_resource(self) -> Resource:
        return Resource(self.type, self.amount)


def _models(resources) -> list[ResourceModel]:
    return [ResourceModel.from_resource(r) for r in resources]


def _from_counts(counts: Counts) -> list[ResourceModel]:
    return _models(to_resources(counts))


def _to_counts(models: list[ResourceModel]) -> Counts:
    return to_counts(m.to_resource() for m in models)


def _to_tuple(models: list[ResourceModel]) -> tuple[Resource, ...]:
    return tuple(m.to_resource() for m in models)


class EffectModel(BaseModel):
    """
    A leader effect, tagged by kind.

    Only the fields of the given kind are meaningful.
    """
    kind: EffectKind
    transform_into: list[ResourceModel] = Field(default_factory=list)
    cost: list[ResourceModel] = Field(default_factory=list)
    profit: list[ResourceModel] = Field(default_factory=list)
    discount: list[ResourceModel] = Field(default_factory=list)
    resource_type: Optional[ResourceType] = None
    capacity: Optional[int] = Field(None, ge=1)

    @classmethod
    def from_effect(cls, effect: Effect) -> EffectModel:
        if isinstance(effect, MarbleEffect):
            return cls(kind=effect.kind, transform_into=_models(effect.transform_into))
        if isinstance(effect, ProductionEffect):
            return cls(
                kind=effect.kind,
                cost=_models(effect.recipe.cost),
                profit=_models(effect.recipe.profit),
            )
        if isinstance(effect, DiscountEffect):
            return cls(kind=effect.kind, discount=_models(effect.discount))
        return cls(kind=effect.kind, resource_type=effect.resource_type, capacity=effect.capacity)

    def to_effect(self) -> Effect:
        if self.kind == EffectKind.MARBLE:
            return MarbleEffect(transform_into=_to_tuple(self.transform_into))
        if self.kind == EffectKind.PRODUCTION:
            return ProductionEffect(
                recipe=ProductionRecipe(cost=_to_tuple(self.cost), profit=_to_tuple(self.profit))
            )
        if self.kind == EffectKind.DISCOUNT:
            return DiscountEffect(discount=_to_tuple(self.discount))
        if self.resource_type is None:
            raise ValueError("Depot effect needs a resource type")
        return DepotEffect(resource_type=self.resource_type, capacity=self.capacity)


class CardRequirementModel(BaseModel):
    color: str
    min_level: int = Field(1, ge=1)
    count: int = Field(1, ge=1)


class LeaderModel(BaseModel):
    """A leader card with its effect and activation state."""
    leader_id: str
    effect: Optional[EffectModel] = None
    resource_requirements: list[ResourceModel] = Field(default_factory=list)
    card_requirements: list[CardRequirementModel] = Field(default_factory=list)
    active: bool = False
    depot_index: Optional[int] = None

    @classmethod
    def from_leader(cls, leader: Leader) -> LeaderModel:
        return cls(
            leader_id=leader.leader_id,
            effect=EffectModel.from_effect(leader.effect) if leader.effect else None,
            resource_requirements=_models(leader.resource_requirements),
            card_requirements=[
                CardRequirementModel(color=r.color, min_level=r.min_level, count=r.count)
                for r in leader.card_requirements
            ],
            active=leader.active,
            depot_index=leader.depot_index,
        )

    def to_leader(self) -> Leader:
        return Leader(
            leader_id=self.leader_id,
            effect=self.effect.to_effect() if self.effect else None,
            resource_requirements=_to_tuple(self.resource_requirements),
            card_requirements=tuple(
                CardRequirement(color=r.color, min_level=r.min_level, count=r.count)
                for r in self.card_requirements
            ),
            active=self.active,
            depot_index=self.depot_index,
        )


class DevelopmentCardModel(BaseModel):
    card_id: str
    color: str
    level: int = Field(..., ge=1)
    cost: list[ResourceModel] = Field(default_factory=list)
    production_cost: list[ResourceModel] = Field(default_factory=list)
    production_profit: list[ResourceModel] = Field(default_factory=list)

    @classmethod
    def from_card(cls, card: DevelopmentCard) -> DevelopmentCardModel:
        return cls(
            card_id=card.card_id,
            color=card.color,
            level=card.level,
            cost=_models(card.cost),
            production_cost=_models(card.production.cost),
            production_profit=_models(card.production.profit),
        )

    def to_card(self) -> DevelopmentCard:
        return DevelopmentCard(
            card_id=self.card_id,
            color=self.color,
            level=self.level,
            cost=_to_tuple(self.cost),
            production=ProductionRecipe(
                cost=_to_tuple(self.production_cost),
                profit=_to_tuple(self.production_profit),
            ),
        )


class MarketModel(BaseModel):
    """Marble grid, spare marble and the tallies of an unfinished insertion."""
    grid: list[list[Marble]]
    spare: Marble
    resources_to_send: list[ResourceModel] = Field(default_factory=list)
    white_marble_drew: int = Field(0, ge=0)

    @classmethod
    def from_market(cls, market: Market) -> MarketModel:
        return cls(
            grid=[list(row) for row in market.grid],
            spare=market.spare,
            resources_to_send=_from_counts(market.resources_to_send),
            white_marble_drew=market.white_marble_drew,
        )

    def to_market(self) -> Market:
        return Market(
            grid=[list(row) for row in self.grid],
            spare=self.spare,
            resources_to_send=_to_counts(self.resources_to_send),
            white_marble_drew=self.white_marble_drew,
        )


class DepotModel(BaseModel):
    capacity: int = Field(..., ge=1)
    resource_type: Optional[ResourceType] = None
    amount: int = Field(0, ge=0)
    fixed_type: bool = False

    @classmethod
    def from_depot(cls, depot: Depot) -> DepotModel:
        return cls(
            capacity=depot.capacity,
            resource_type=depot.resource_type,
            amount=depot.amount,
            fixed_type=depot.fixed_type,
        )

    def to_depot(self) -> Depot:
        return Depot(
            capacity=self.capacity,
            resource_type=self.resource_type,
            amount=self.amount,
            fixed_type=self.fixed_type,
        )


# =============================================================================
# Player boards
# =============================================================================

class ResourceManagerModel(BaseModel):
    depots: list[DepotModel]
    leader_depots: list[DepotModel] = Field(default_factory=list)
    strongbox: list[ResourceModel] = Field(default_factory=list)
    buffer: list[ResourceModel] = Field(default_factory=list)
    discounts: list[ResourceModel] = Field(default_factory=list)
    any_required: int = 0
    requirement_is_buy_development: bool = False
    production_cost: list[ResourceModel] = Field(default_factory=list)
    resources_to_produce: list[ResourceModel] = Field(default_factory=list)
    any_to_produce: int = 0
    faith_points: int = 0

    @classmethod
    def from_manager(cls, rm: ResourceManager) -> ResourceManagerModel:
        return cls(
            depots=[DepotModel.from_depot(d) for d in rm.warehouse.depots],
            leader_depots=[DepotModel.from_depot(d) for d in rm.warehouse.leader_depots],
            strongbox=_from_counts(rm.strongbox.counts()),
            buffer=_from_counts(rm.buffer),
            discounts=_from_counts(rm.discounts),
            any_required=rm.any_required,
            requirement_is_buy_development=rm.requirement_is_buy_development,
            production_cost=_from_counts(rm.production_cost),
            resources_to_produce=_from_counts(rm.resources_to_produce),
            any_to_produce=rm.any_to_produce,
            faith_points=rm.faith_points,
        )

    def to_manager(self) -> ResourceManager:
        return ResourceManager(
            warehouse=Warehouse(
                depots=[d.to_depot() for d in self.depots],
                leader_depots=[d.to_depot() for d in self.leader_depots],
            ),
            strongbox=Strongbox(resources=_to_counts(self.strongbox)),
            buffer=_to_counts(self.buffer),
            discounts=_to_counts(self.discounts),
            any_required=self.any_required,
            requirement_is_buy_development=self.requirement_is_buy_development,
            production_cost=_to_counts(self.production_cost),
            resources_to_produce=_to_counts(self.resources_to_produce),
            any_to_produce=self.any_to_produce,
            faith_points=self.faith_points,
        )


class CardsModel(BaseModel):
    slots: list[list[DevelopmentCardModel]]
    leaders: list[LeaderModel] = Field(default_factory=list)
    pending_card: Optional[DevelopmentCardModel] = None
    pending_slot: Optional[int] = None
    used_productions: list[str] = Field(default_factory=list)

    @classmethod
    def from_manager(cls, cards: CardManager) -> CardsModel:
        return cls(
            slots=[[DevelopmentCardModel.from_card(c) for c in stack] for stack in cards.slots],
            leaders=[LeaderModel.from_leader(l) for l in cards.leaders],
            pending_card=(
                DevelopmentCardModel.from_card(cards.pending_card) if cards.pending_card else None
            ),
            pending_slot=cards.pending_slot,
            used_productions=list(cards.used_productions),
        )

    def to_manager(self) -> CardManager:
        return CardManager(
            slots=[[c.to_card() for c in stack] for stack in self.slots],
            leaders=[l.to_leader() for l in self.leaders],
            pending_card=self.pending_card.to_card() if self.pending_card else None,
            pending_slot=self.pending_slot,
            used_productions=list(self.used_productions),
        )


class FaithModel(BaseModel):
    length: int
    sections: list[tuple[int, int]]
    position: int = Field(0, ge=0)
    favors: list[FavorStatus] = Field(default_factory=list)

    @classmethod
    def from_track(cls, track: FaithTrack) -> FaithModel:
        return cls(
            length=track.length,
            sections=[tuple(s) for s in track.sections],
            position=track.position,
            favors=list(track.favors),
        )

    def to_track(self) -> FaithTrack:
        return FaithTrack(
            length=self.length,
            sections=tuple(tuple(s) for s in self.sections),
            position=self.position,
            favors=list(self.favors),
        )


class PlayerModel(BaseModel):
    player_id: str
    name: str
    phase: TurnPhase
    active: bool = True
    setup_resources_owed: int = 0
    resources: ResourceManagerModel
    cards: CardsModel
    faith: FaithModel


class GameSnapshot(BaseModel):
    """Complete, versioned match document."""
    version: int = SNAPSHOT_VERSION
    game_id: str
    phase: GamePhase
    turn_number: int = 0
    current_player_idx: int = 0
    config: dict = Field(default_factory=dict)
    market: MarketModel
    players: list[PlayerModel]
    vatican_reports: list[int] = Field(default_factory=list)
    random_seed: int = 0


# =============================================================================
# Encode / decode
# =============================================================================

def encode_state(state: GameState) -> GameSnapshot:
    """Capture a match as a snapshot."""
    return GameSnapshot(
        game_id=state.game_id,
        phase=state.phase,
        turn_number=state.turn_number,
        current_player_idx=state.current_player_idx,
        config=state.config.to_dict(),
        market=MarketModel.from_market(state.market),
        players=[
            PlayerModel(
                player_id=p.player_id,
                name=p.name,
                phase=p.phase,
                active=p.active,
                setup_resources_owed=p.setup_resources_owed,
                resources=ResourceManagerModel.from_manager(p.resources),
                cards=CardsModel.from_manager(p.cards),
                faith=FaithModel.from_track(p.faith),
            )
            for p in state.players
        ],
        vatican_reports=list(state.vatican_reports),
        random_seed=state.random_seed,
    )


def _check_version(version) -> None:
    if version != SNAPSHOT_VERSION:
        raise ValueError(
            f"Unsupported snapshot version {version!r}, expected {SNAPSHOT_VERSION}"
        )


def decode_state(snapshot: GameSnapshot) -> GameState:
    """Rebuild the exact match a snapshot was taken from."""
    _check_version(snapshot.version)
    return GameState(
        game_id=snapshot.game_id,
        market=snapshot.market.to_market(),
        config=RulesConfig(**snapshot.config),
        phase=snapshot.phase,
        turn_number=snapshot.turn_number,
        current_player_idx=snapshot.current_player_idx,
        players=[
            PlayerState(
                player_id=p.player_id,
                name=p.name,
                resources=p.resources.to_manager(),
                cards=p.cards.to_manager(),
                faith=p.faith.to_track(),
                phase=p.phase,
                active=p.active,
                setup_resources_owed=p.setup_resources_owed,
            )
            for p in snapshot.players
        ],
        vatican_reports=list(snapshot.vatican_reports),
        random_seed=snapshot.random_seed,
    )


def dumps(state: GameState) -> str:
    return encode_state(state).model_dump_json()


def loads(text: str) -> GameState:
    data = json.loads(text)
    _check_version(data.get("version"))
    return decode_state(GameSnapshot.model_validate(data))
