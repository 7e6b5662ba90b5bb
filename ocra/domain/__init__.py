"""Describes the OCRA domain. Centres around the `SearchSession`.

What is actually going on?

- Creating a recipe is entirely the job of a large language model served
  behind an api. We send a dish name and a schema, we get JSON back.
- Recipes are never edited. Only the way they are looked at changes;
  units, rating, whether they are saved.
- The one real invariant: only the latest search gets to update the page.

The model is easy to fake, so everything here is tested against fakes.
"""
