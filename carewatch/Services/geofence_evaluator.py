# carewatch/Services/geofence_evaluator.py

from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from carewatch.Core.config import settings
from carewatch.Schemas.safe_zone import SafeZone_get
from carewatch.Schemas.tracking_state import ContainmentState, GeofenceEvent, Position
from carewatch.Services.distance import calculate_haversine_distance


class GeofenceEvaluator:
    """
    Servicio de evaluación de zonas seguras.

    Determina, para cada zona circular de un cuidador, si la posición actual
    está dentro o fuera, y compara contra el estado de contención previo para
    detectar transiciones ENTRY/EXIT.

    No guarda estado: recibe la contención previa y devuelve la nueva. El
    pipeline decide cuándo confirmarla.
    """

    def __init__(self, silent_initial_containment: Optional[bool] = None):
        self.silent_initial_containment = (
            settings.SILENT_INITIAL_CONTAINMENT
            if silent_initial_containment is None
            else silent_initial_containment
        )

    def distance_to_zone(self, position: Position, zone: SafeZone_get) -> float:
        """Distancia en metros entre la posición y el centro de la zona."""
        center = zone.center
        return calculate_haversine_distance(
            position.latitude,
            position.longitude,
            center.latitude,
            center.longitude
        )

    def is_inside(self, position: Position, zone: SafeZone_get) -> bool:
        """Contención: distancia <= radio (borde incluido)."""
        return self.distance_to_zone(position, zone) <= zone.radius

    def containment_snapshot(
        self,
        position: Position,
        zones: Sequence[SafeZone_get],
        timestamp: datetime
    ) -> Dict[str, ContainmentState]:
        """
        Contención de una posición contra todas las zonas, sin eventos.

        Usado para reconstruir el estado a partir del último registro
        persistido cuando el proceso arranca en frío.
        """
        return {
            zone.id: ContainmentState(
                zone_id=zone.id,
                is_inside=self.is_inside(position, zone),
                timestamp=timestamp
            )
            for zone in sorted(zones, key=lambda z: z.id)
        }

    def evaluate(
        self,
        caregiver_id: str,
        position: Position,
        zones: Sequence[SafeZone_get],
        prior_containment: Mapping[str, ContainmentState],
        occurred_at: datetime
    ) -> Tuple[Dict[str, ContainmentState], List[GeofenceEvent]]:
        """
        Evalúa una posición contra las zonas del cuidador.

        Matriz de decisión por zona (orden estable por id):
            - sin estado previo → se registra la contención; con la política
              de contención inicial silenciosa no se emite evento
            - fuera → dentro y alert_on_entry → evento 'entry'
            - dentro → fuera y alert_on_exit → evento 'exit'
            - sin cambio → sin evento

        Args:
            caregiver_id: Cuidador dueño de la posición y de las zonas
            position: Posición actual
            zones: Snapshot de zonas del cuidador (solo lectura)
            prior_containment: zone_id → ContainmentState previo
            occurred_at: Timestamp de la muestra evaluada

        Returns:
            (nueva contención por zone_id, eventos en orden de zone_id)

        Notes:
            - Estado previo ausente equivale a 'fuera': nunca puede producir EXIT
            - Zonas que ya no existen desaparecen del estado devuelto
            - Zonas de otro cuidador se ignoran
        """
        new_containment: Dict[str, ContainmentState] = {}
        events: List[GeofenceEvent] = []

        for zone in sorted(zones, key=lambda z: z.id):
            if zone.caregiver_id != caregiver_id:
                print(f"[GEOFENCE] Zone {zone.id} belongs to another caregiver, ignored for {caregiver_id}")
                continue

            inside = self.is_inside(position, zone)
            prior = prior_containment.get(zone.id)
            was_inside = prior.is_inside if prior is not None else False

            new_containment[zone.id] = ContainmentState(
                zone_id=zone.id,
                is_inside=inside,
                timestamp=occurred_at
            )

            if prior is None and self.silent_initial_containment:
                continue

            kind = None
            if inside and not was_inside and zone.alert_on_entry:
                kind = "entry"
            elif was_inside and not inside and zone.alert_on_exit:
                kind = "exit"

            if kind:
                events.append(GeofenceEvent(
                    caregiver_id=caregiver_id,
                    zone_id=zone.id,
                    zone_name=zone.name,
                    kind=kind,
                    occurred_at=occurred_at,
                    position=position
                ))

        return new_containment, events


# --------------------------------------------------------
# INSTANCIA GLOBAL (Singleton)
# --------------------------------------------------------
geofence_evaluator = GeofenceEvaluator()
