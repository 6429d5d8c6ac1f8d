# debug_itinerary.py
import asyncio
import json

from itinerary_planner.orchestrator import orchestrate_itinerary


async def main():
    payload = {
        "destination": "제주도",
        "dates": {"start": "2025-10-10", "end": "2025-10-12"},
        "interests": ["자연", "맛집"],
        "transportType": "driving",
        "accommodation": {"name": "제주 신라호텔", "lat": 33.2474, "lng": 126.4083},
        "mustVisit": ["성산일출봉", "우도"],
    }

    result = await orchestrate_itinerary(payload)

    for summary in result["summaries"]:
        day = summary["day"]
        print(f"Day {day + 1}: {summary['time']['formattedTotalTime']}, {summary['cost']['formattedTotalCost']}")
        for order, place in enumerate(result["itinerary"][str(day)], 1):
            leg = place.get("travelTimeFromPrevious") or {}
            print(f"  {order}. {place['name']} ({place['category']}) +{leg.get('durationMinutes', 0)}분")
    if result["notes"]:
        print("Notes:")
        print(json.dumps(result["notes"], ensure_ascii=False, indent=2))


if __name__ == "__main__":
    asyncio.run(main())
