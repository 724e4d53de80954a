from rest_framework import serializers

from fleet.models import Equipment, EquipmentStatus, EquipmentType


class EquipmentListQuerySerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=EquipmentType.choices, required=False)
    status = serializers.ChoiceField(choices=EquipmentStatus.choices, required=False)
    floor_id = serializers.IntegerField(min_value=1, required=False)


class EquipmentSearchQuerySerializer(serializers.Serializer):
    q = serializers.CharField(max_length=64, required=False, allow_blank=True)
    type = serializers.ChoiceField(choices=EquipmentType.choices, required=False)
    status = serializers.ChoiceField(choices=EquipmentStatus.choices, required=False)


class EquipmentStatusSerializer(serializers.Serializer):
    status = serializers.CharField(max_length=16)


def serialize_equipment(eq: Equipment, *, with_request: bool = False) -> dict:
    data = {
        'id': str(eq.id),
        'equipment_code': eq.equipment_code,
        'type': eq.type,
        'status': eq.status,
        'battery_level': eq.battery_level,
        'current_floor': (
            {'id': eq.current_floor_id, 'name': eq.current_floor.name, 'building': eq.current_floor.building}
            if eq.current_floor_id else None
        ),
        'current_room': (
            {'id': eq.current_room_id, 'name': eq.current_room.name, 'room_type': eq.current_room.room_type}
            if eq.current_room_id else None
        ),
        'current_ap': (
            {'id': eq.current_ap_id, 'name': eq.current_ap.name, 'x_coord': eq.current_ap.x_coord, 'y_coord': eq.current_ap.y_coord}
            if eq.current_ap_id else None
        ),
        'assigned_request_id': str(eq.assigned_request_id) if eq.assigned_request_id else None,
    }
    if with_request:
        req = eq.assigned_request
        data['assigned_request'] = None if req is None else {
            'id': str(req.id),
            'patient_name': req.patient_name,
            'priority': req.priority,
            'status': req.status,
            'pickup_room': req.pickup_room.name,
            'destination_room': req.destination_room.name,
        }
    return data
