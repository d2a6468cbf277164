"""Built-in demo identities, one per demo kind."""

from __future__ import annotations

from typing import Any, Dict

DEMO_USERS: Dict[str, Dict[str, Any]] = {
    "retailer": {
        "id": "demo-retailer-001",
        "email": "demo.retailer@savanna.co.ke",
        "phone": "+254712345678",
        "firstName": "Mary",
        "lastName": "Wanjiku",
        "businessName": "Wanjiku General Store",
        "businessType": "grocery_store",
        "userType": "retailer",
        "verificationLevel": "verified",
        "kycStatus": "approved",
        "location": {"county": "Nairobi", "town": "Westlands"},
        "mpesaPhone": "+254712345678",
        "creditScore": 750,
        "joinedDate": "2024-01-15",
        "isActive": True,
        "preferences": {"language": "en", "notifications": True, "ussdMode": False, "currency": "KES"},
        "wildlifeProfile": {
            "tier": "elephant",
            "points": 2500,
            "achievements": ["Pride Member", "Loyal Customer", "Group Buyer"],
            "preferredAnimal": "elephant",
        },
    },
    "supplier": {
        "id": "demo-supplier-001",
        "email": "demo.supplier@savanna.co.ke",
        "phone": "+254723456789",
        "firstName": "James",
        "lastName": "Kiprotich",
        "businessName": "Kiprotich Distributors",
        "businessType": "distributor",
        "userType": "supplier",
        "verificationLevel": "premium",
        "kycStatus": "approved",
        "location": {"county": "Nakuru", "town": "Nakuru"},
        "mpesaPhone": "+254723456789",
        "creditScore": 850,
        "joinedDate": "2023-08-10",
        "isActive": True,
        "preferences": {"language": "en", "notifications": True, "ussdMode": False, "currency": "KES"},
        "wildlifeProfile": {
            "tier": "rhino",
            "points": 4200,
            "achievements": ["Pride Member", "Trusted Supplier", "Volume Leader"],
            "preferredAnimal": "rhino",
        },
    },
    "logistics": {
        "id": "demo-logistics-001",
        "email": "demo.logistics@savanna.co.ke",
        "phone": "+254734567890",
        "firstName": "Grace",
        "lastName": "Njeri",
        "businessName": "Njeri Express",
        "businessType": "logistics",
        "userType": "logistics",
        "verificationLevel": "verified",
        "kycStatus": "approved",
        "location": {"county": "Kiambu", "town": "Thika"},
        "mpesaPhone": "+254734567890",
        "creditScore": 680,
        "joinedDate": "2024-03-20",
        "isActive": True,
        "preferences": {"language": "sw", "notifications": True, "ussdMode": True, "currency": "KES"},
        "wildlifeProfile": {
            "tier": "cheetah",
            "points": 1800,
            "achievements": ["Pride Member", "Speed Demon", "Route Master"],
            "preferredAnimal": "cheetah",
        },
    },
}

__all__ = ["DEMO_USERS"]
