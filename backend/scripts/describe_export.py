from collections import Counter
from datetime import datetime
import json
import sys
import os

from settings import settings

EXPORT = sys.argv[1] if len(sys.argv) > 1 else settings.data_file

def parse_date(s):
    if not isinstance(s, str):
        return None
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        return None

print('File:', EXPORT)
print('Size (MB):', round(os.path.getsize(EXPORT) / (1024*1024), 2))

with open(EXPORT, 'r', encoding='utf-8') as f:
    records = json.load(f)

type_counts = Counter()
phone_counts = Counter()
min_date = None
max_date = None

for rec in records:
    type_counts[rec.get('type') or 'legacy'] += 1
    if rec.get('phone'):
        phone_counts[str(rec['phone'])] += 1
    d = parse_date(rec.get('receivedAt') or rec.get('timestamp'))
    if d:
        if min_date is None or d < min_date:
            min_date = d
        if max_date is None or d > max_date:
            max_date = d

print('\nTotals:')
print('  Records:', len(records))
for t, c in type_counts.most_common():
    print(f'  {c:8d}  {t}')

print('\nTop 10 phones:')
for p, c in phone_counts.most_common(10):
    print(f'  {c:8d}  {p}')

print('\nDate range (receivedAt, or timestamp for legacy records):')
print('  earliest:', min_date.isoformat() if min_date else 'N/A')
print('  latest:  ', max_date.isoformat() if max_date else 'N/A')
